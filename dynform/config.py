import logging
import os
from pathlib import Path
from typing import Dict, List, Optional

log = logging.getLogger(__name__)

PACKAGE_DIR = Path(__file__).resolve().parent
ENV_FILE_VAR = "DYNFORM_ENV_FILE"

# Settings a .env file may provide; anything else in it is ignored
KNOWN_KEYS = (
	ENV_FILE_VAR,
	"DYNFORM_LAYOUT_PATH",
	"DYNFORM_TEMPLATES_DIR",
	"LOG_LEVEL",
	"ALLOW_ORIGINS",
)


def _unquote(val: str) -> str:
	if len(val) >= 2 and val[0] == val[-1] and val[0] in ("'", '"'):
		return val[1:-1]
	# Unquoted values may carry a trailing " # comment"
	hash_at = val.find(" #")
	return val[:hash_at].rstrip() if hash_at != -1 else val


def parse_env_file(text: str) -> Dict[str, str]:
	"""Parse KEY=VALUE lines; blanks, comments and an ``export`` prefix are tolerated."""
	values: Dict[str, str] = {}
	for lineno, line in enumerate(text.splitlines(), start=1):
		s = line.strip()
		if not s or s.startswith("#"):
			continue
		if s.startswith("export "):
			s = s[len("export "):].lstrip()
		if "=" not in s:
			log.debug("config.env: line %d has no '=', skipped", lineno)
			continue
		key, val = s.split("=", 1)
		key = key.strip()
		if key:
			values[key] = _unquote(val.strip())
	return values


def env_file() -> Path:
	return Path(os.getenv(ENV_FILE_VAR, ".env"))


def load_dotenv_if_needed(env_path: Optional[Path] = None) -> List[str]:
	"""Copy dynform settings from a .env file into the environment.

	Variables the environment already sets win. Returns the keys applied.
	"""
	# Tests must not pick up a developer's local .env
	if os.getenv("PYTEST_CURRENT_TEST"):
		return []
	path = env_path if env_path is not None else env_file()
	if not path.is_file():
		return []
	try:
		text = path.read_text(encoding="utf-8")
	except (OSError, UnicodeDecodeError) as exc:
		log.warning("config.env: cannot read %s err=%s", path, exc)
		return []
	applied: List[str] = []
	for key, val in parse_env_file(text).items():
		if key not in KNOWN_KEYS or key in os.environ:
			continue
		os.environ[key] = val
		applied.append(key)
	if applied:
		log.info("config.env: loaded %s from %s", ",".join(applied), path)
	return applied


def layout_path() -> Path:
	return Path(os.getenv("DYNFORM_LAYOUT_PATH", "layout.json"))


def templates_dir() -> Path:
	raw = os.getenv("DYNFORM_TEMPLATES_DIR", "").strip()
	return Path(raw) if raw else PACKAGE_DIR / "templates"


def log_level() -> str:
	return os.getenv("LOG_LEVEL", "INFO").upper()


def allow_origins() -> List[str]:
	return [o.strip() for o in os.getenv("ALLOW_ORIGINS", "*").split(",") if o.strip()]
