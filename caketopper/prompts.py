from textwrap import dedent
from typing import Optional

BASE_INSTRUCTIONS = dedent(
    """\
    Você é um designer especialista em criar decorações para festas. Um usuário enviou uma imagem para ser transformada em um conjunto de topo de bolo para impressão. Sua tarefa é seguir estes passos com precisão:
    1. Identifique os personagens principais e os objetos decorativos importantes na imagem enviada.
    2. Recrie cada um desses elementos como uma ilustração digital separada, de alta qualidade e com fundo transparente. O estilo deve ser vibrante, limpo e adequado para impressão (estilo "vetor" ou "cartoon").
    3. Adicione a cada ilustração uma borda branca grossa e um contorno fino cinza ao redor, criando um efeito de "corte especial" (die-cut), para facilitar o recorte manual.
    4. Organize todas essas ilustrações individuais, já com as bordas, em uma única tela branca de tamanho A4 (proporção 210x297mm).
    5. Garanta que os elementos estejam bem distribuídos e não se sobreponham, aproveitando o espaço da folha.
    6. O resultado final deve ser UMA ÚNICA imagem desta folha A4 pronta para impressão."""
)

NAME_DIRECTIVE = (
    '7. IMPORTANTE: Incorpore o texto "{name}" em um dos elementos principais do topo de bolo '
    "(como uma placa, banner ou de forma estilizada). O estilo do texto (fonte, cor, efeitos) deve "
    "combinar perfeitamente com a tipografia e o tema da imagem de referência original. Se a imagem "
    'original tiver um nome, substitua-o por "{name}" mantendo o mesmo estilo.'
)

AGE_DIRECTIVE = (
    "8. IGUALMENTE IMPORTANTE: Encontre onde a idade está representada na imagem de referência "
    '(pode ser um número sozinho, ou texto como "5 anos", "2 meses", etc.). Substitua essa idade '
    'pelo texto "{age}". É crucial que você mantenha EXATAMENTE o mesmo estilo do original: mesma '
    "fonte, mesma cor, mesmos contornos e efeitos."
)


def get_name_directive(name: str) -> str:
    # str.replace keeps braces inside the user's text intact
    return NAME_DIRECTIVE.replace("{name}", name)


def get_age_directive(age: str) -> str:
    return AGE_DIRECTIVE.replace("{age}", age)


def get_cake_topper_prompt(name: Optional[str] = None, age: Optional[str] = None) -> str:
    """Build the instruction sent along with the reference image.

    The base steps always come first, then the name directive, then the age
    directive. ``name`` and ``age`` are embedded exactly as given.
    """
    prompt = BASE_INSTRUCTIONS
    if name:
        prompt += "\n" + get_name_directive(name)
    if age:
        prompt += "\n" + get_age_directive(age)
    return prompt
