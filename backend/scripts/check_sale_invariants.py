from __future__ import annotations

import asyncio
import os
import sys
from pathlib import Path

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine

# Script entrypoint: ensure `backend/` is importable.
BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from sales_api.services.invariants import find_sale_invariant_violations  # noqa: E402


async def _main() -> int:
    url = os.environ.get("DATABASE_URL")
    if not url:
        print("DATABASE_URL is required.", file=sys.stderr)
        return 2

    engine = create_async_engine(url, pool_pre_ping=True)
    try:
        async with AsyncSession(engine) as session:
            violations = await find_sale_invariant_violations(session)
    finally:
        await engine.dispose()

    for v in violations:
        print(f"Sale {v.sale_number} ({v.sale_id}): {v.problem}", file=sys.stderr)
    if violations:
        print(f"{len(violations)} sale invariant violation(s) found.", file=sys.stderr)
        return 1

    print("Sale invariants OK.")
    return 0


if __name__ == "__main__":
    raise SystemExit(asyncio.run(_main()))
