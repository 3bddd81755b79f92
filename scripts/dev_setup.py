"""Write the local .env used by the studio and initialize the database."""
from __future__ import annotations

import argparse
import shutil
import sys
from pathlib import Path
from typing import Dict

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from creative_studio import create_app  # noqa: E402
from creative_studio.extensions import db  # noqa: E402

DEFAULT_ENV_PATH = REPO_ROOT / ".env"
BACKUP_SUFFIX = ".bak"

# Command-line option -> environment variable written to .env.
OPTIONAL_ENV_KEYS = {
    "secret_key": "SECRET_KEY",
    "database_url": "DATABASE_URL",
    "somni_api_base": "SOMNI_API_BASE",
    "openai_api_key": "OPENAI_API_KEY",
    "openai_chat_model": "OPENAI_CHAT_MODEL",
    "gemini_api_key": "GEMINI_API_KEY",
}


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=(
            "Create or update a .env file with the settings the creative studio reads at start-up "
            "and initialize the database."
        )
    )
    parser.add_argument(
        "--flask-app",
        default="creative_studio:create_app",
        help="Entry point used by Flask (default: creative_studio:create_app)",
    )
    parser.add_argument("--secret-key", help="Secret key for Flask sessions.")
    parser.add_argument("--database-url", help="Override DATABASE_URL (optional).")
    parser.add_argument("--somni-api-base", help="Base URL of the setting-extraction service.")
    parser.add_argument("--openai-api-key", help="API key used by the chat assistant.")
    parser.add_argument("--openai-chat-model", help="Chat model name (default: gpt-4o-mini).")
    parser.add_argument("--gemini-api-key", help="API key used for character image generation.")
    parser.add_argument(
        "--env-path",
        type=Path,
        default=DEFAULT_ENV_PATH,
        help="Path to the .env file that should be created/updated.",
    )
    parser.add_argument(
        "--skip-db",
        action="store_true",
        help="Only update the .env file without touching the database.",
    )
    return parser.parse_args()


def read_env(path: Path) -> Dict[str, str]:
    if not path.exists():
        return {}
    data: Dict[str, str] = {}
    for line in path.read_text().splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            continue
        key, _, value = stripped.partition("=")
        data[key.strip()] = value.strip()
    return data


def write_env(path: Path, values: Dict[str, str]) -> None:
    if path.exists():
        backup_path = path.with_suffix(path.suffix + BACKUP_SUFFIX)
        shutil.copy(path, backup_path)
        print(f"Existing {path.name} backed up to {backup_path.name}.")
    lines = [f"{key}={value}" for key, value in values.items()]
    path.write_text("\n".join(lines) + "\n")
    print(f"Updated environment variables written to {path}.")


def update_env_file(args: argparse.Namespace) -> Dict[str, str]:
    env_data = read_env(args.env_path)
    env_data["FLASK_APP"] = args.flask_app
    for option, env_key in OPTIONAL_ENV_KEYS.items():
        value = getattr(args, option)
        if value:
            env_data[env_key] = value
    write_env(args.env_path, env_data)
    return env_data


def _redact(key: str, value: str) -> str:
    if key.endswith("_KEY") and len(value) > 8:
        return value[:4] + "…" + value[-4:]
    return value


def initialize_database() -> None:
    app = create_app()
    with app.app_context():
        db.create_all()
        print(f"Database initialized ({app.config['SQLALCHEMY_DATABASE_URI']}).")


def main() -> None:
    args = parse_args()
    env_values = update_env_file(args)

    if not args.skip_db:
        initialize_database()
    else:
        print("Database initialization skipped.")

    print("\nSetup complete! Summary:")
    for key in sorted(env_values):
        print(f"  {key}={_redact(key, env_values[key])}")


if __name__ == "__main__":
    main()
