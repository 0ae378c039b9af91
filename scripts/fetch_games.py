from __future__ import annotations

import argparse
import asyncio
import json
import sys
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from dotenv import find_dotenv, load_dotenv  # noqa: E402

from core.config import get_settings  # noqa: E402
from core.logging import get_logger  # noqa: E402
from providers.http_client import AsyncHttpClient  # noqa: E402
from valuation.service import build_games_service  # noqa: E402

log = get_logger("scripts.fetch_games")


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Esegue un'aggregazione e stampa il JSON della risposta.")
    parser.add_argument("--date", dest="day", type=date.fromisoformat, default=None, help="YYYY-MM-DD (default oggi)")
    parser.add_argument("--top", type=int, default=None, help="Stampa solo le prime N fixtures di 'response'")
    parser.add_argument("--indent", type=int, default=2)
    return parser.parse_args(argv)


async def _run(day: Optional[date]) -> Dict[str, Any]:
    settings = get_settings()
    http = AsyncHttpClient(settings=settings)
    try:
        service = build_games_service(http, settings)
        return await service.get_games(day)
    finally:
        await http.aclose()


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    # .env della working directory (override=True)
    dotenv_path = find_dotenv(usecwd=True)
    if dotenv_path:
        load_dotenv(dotenv_path, override=True)
    payload = asyncio.run(_run(args.day))
    if args.top is not None:
        payload["response"] = payload["response"][: max(0, args.top)]
    log.info("fetch_games_done", extra={"count": len(payload["response"])})
    print(json.dumps(payload, ensure_ascii=False, indent=args.indent))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
