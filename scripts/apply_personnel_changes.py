"""Apply personnel changes whose effective date has arrived (run daily, e.g. from cron)."""

from __future__ import annotations

import argparse
import importlib
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.remote_work.remote_work.common.datetime_utils import parse_optional_date
from src.remote_work.remote_work.container import build_container

logger = logging.getLogger("apply_personnel_changes")


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--date", help="apply changes effective on or before YYYY-MM-DD (default: today)")
    args = parser.parse_args()

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    logging.basicConfig(
        level=getattr(logging, str(getattr(settings, "LOG_LEVEL", "INFO")).upper(), logging.INFO),
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )

    container = build_container(db_config=dict(settings.DB_CONFIG))
    applied = container.personnel_service.apply_due(today=parse_optional_date(args.date, "--date"))
    logger.info("Applied %d personnel change(s)", applied)


if __name__ == "__main__":
    main()
