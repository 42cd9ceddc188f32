#!/usr/bin/env python3
"""
Quick manual check that a cake topper sheet can be generated end to end.
Needs a Gemini key (CAKETOPPER_GEMINI_API_KEY or GEMINI_API_KEY).

Usage: python generate_topper.py reference.png [name] [age]
"""

import asyncio
import base64
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from caketopper.service import CakeTopperService


async def generate(reference: Path, name: str | None, age: str | None) -> bool:
    print("=" * 70)
    print(f"Generating cake topper from {reference}")
    print("=" * 70)

    service = CakeTopperService()
    image_base64 = base64.b64encode(reference.read_bytes()).decode("ascii")

    try:
        result = await service.generate_cake_topper(image_base64, name, age)
    except Exception as e:
        print(f"❌ Generation failed: {e}\n")
        import traceback
        traceback.print_exc()
        return False

    extension = result.mime_type.split("/")[-1]
    output = reference.with_name(f"{reference.stem}-topo-de-bolo.{extension}")
    output.write_bytes(result.image)
    print(f"✅ Wrote {len(result.image)} bytes ({result.mime_type}) to {output}")
    return True


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(2)

    reference = Path(sys.argv[1])
    name = sys.argv[2] if len(sys.argv) > 2 else None
    age = sys.argv[3] if len(sys.argv) > 3 else None

    print("\nThis may take a minute while the model draws the sheet...\n")
    ok = asyncio.run(generate(reference, name, age))
    sys.exit(0 if ok else 1)
