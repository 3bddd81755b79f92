"""Seed each project's setting data from its character roster.

Projects that already carry setting data are skipped unless ``--force`` is
given. A failure on one project is logged and the run moves on to the next.
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from creative_studio import create_app  # noqa: E402
from creative_studio.extensions import db  # noqa: E402
from creative_studio.models import Project  # noqa: E402
from creative_studio.services.setting_data import build_setting_data  # noqa: E402

LOGGER = logging.getLogger("migrate_setting_data")


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "--force",
        action="store_true",
        help="Rebuild setting data even for projects that already have it.",
    )
    return parser.parse_args(argv)


def migrate(*, force: bool = False) -> int:
    """Rebuild setting data; returns the number of projects updated."""

    updated = 0
    for project in Project.query.order_by(Project.id).all():
        if project.setting_data and not force:
            LOGGER.info(
                "Skipping project %s (%s): already has setting data. Use --force to override.",
                project.id,
                project.title,
            )
            continue

        try:
            project.setting_data = build_setting_data(project.characters)
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            LOGGER.exception("Failed to update project %s", project.id)
            continue

        updated += 1
        LOGGER.info(
            "Updated project %s setting data (%d characters)",
            project.id,
            len(project.setting_data["characters"]),
        )

    return updated


def main(argv: Optional[Sequence[str]] = None) -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    args = parse_args(argv)
    app = create_app()
    with app.app_context():
        count = migrate(force=args.force)
    LOGGER.info("Migration complete: %d project(s) updated.", count)


if __name__ == "__main__":
    main()
