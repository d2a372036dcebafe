import argparse
import asyncio
import json
import sys

from .config import get_settings
from .logging_setup import configure_logging
from .mapper import map_to_home_schema
from .climate import climate_recommendations
from .orchestrator import build_orchestrator


def _build_parser():
    parser = argparse.ArgumentParser(
        description="Home property and climate enrichment CLI",
    )
    parser.add_argument(
        "--db",
        default=None,
        help="SQLite cache path (default: HE_DB_PATH or ./enrichment_cache.sqlite)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (DEBUG, INFO, etc.)",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        help="Emit log records as JSON lines on stderr",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    prop = sub.add_parser("property", help="Look up a property by address")
    prop.add_argument("--address", required=True, help="Street address")
    prop.add_argument("--city", required=True)
    prop.add_argument("--state", required=True, help="Two-letter code or full name")
    prop.add_argument("--zip", dest="zip_code", required=True, help="ZIP or ZIP+4")

    climate = sub.add_parser("climate", help="Look up climate data for a ZIP")
    climate.add_argument("--zip", dest="zip_code", required=True)
    climate.add_argument("--state", default=None)
    return parser


async def _run(args) -> dict:
    orch = build_orchestrator(get_settings(), db_path=args.db)
    try:
        if args.command == "property":
            profile = await orch.enrich(args.address, args.city, args.state, args.zip_code)
            return {
                "found": profile.found,
                "data": profile.to_dict(),
                "home": map_to_home_schema(profile).to_dict(),
                "sources": list(profile.sources),
            }
        climate = await orch.enrich_climate(args.zip_code, args.state)
        return {
            "found": climate.found,
            "data": climate.to_dict(),
            "recommendations": climate_recommendations(climate) if climate.found else [],
            "sources": list(climate.sources),
        }
    finally:
        await orch.aclose()


def main(argv=None):
    args = _build_parser().parse_args(argv)
    configure_logging(args.log_level, json_lines=args.log_json)
    result = asyncio.run(_run(args))
    print(json.dumps(result, indent=2, sort_keys=True))
    return 0 if result["found"] else 1


if __name__ == "__main__":
    sys.exit(main())
