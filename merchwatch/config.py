"""
merchwatch/config.py
Config with defaults and auto-detection. Persists to merchwatch_config.json.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from merchwatch.detectors.intent_detector import FUZZY_THRESHOLD, QUERY_CUES

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "merchwatch_config.json"

DEFAULT_CONFIG = {
    "policy": "message_intent",
    "sla_minutes": None,
    "mapping_dir": None,
    "mapping_glob": "dump_*.csv",
    "mapping_urls": [],
    "mapping_timeout_sec": 15,
    "query_cues": list(QUERY_CUES),
    "fuzzy_threshold": FUZZY_THRESHOLD,
    "preview_chars": 160,
    "api_host": "127.0.0.1",
    "api_port": 8766,
    "cors_origins": [
        "http://localhost",
        "http://localhost:8766",
        "http://127.0.0.1",
        "http://127.0.0.1:8766",
    ],
}

# Where dump_*.csv tables usually live
AUTO_DETECT_PATHS = [
    Path("data"),
    Path.home() / "merchwatch" / "data",
]


def _config_path(project_root: Optional[Path] = None) -> Path:
    root = project_root or Path.cwd()
    return root / CONFIG_FILENAME


def load_config(project_root: Optional[Path] = None) -> Dict[str, Any]:
    """Load config from merchwatch_config.json. Returns defaults if missing."""
    path = _config_path(project_root)
    if path.exists():
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            if isinstance(data, dict):
                return {**DEFAULT_CONFIG, **data}
            logger.warning(f"Config ignored, expected a JSON object: {path}")
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Config load failed: {e}")
    return dict(DEFAULT_CONFIG)


def save_config(config: Dict[str, Any], project_root: Optional[Path] = None) -> Path:
    """Persist config to merchwatch_config.json."""
    path = _config_path(project_root)
    path.write_text(json.dumps(config, indent=2), encoding="utf-8")
    return path


def auto_detect_mapping_dir(pattern: str = "dump_*.csv") -> Optional[Path]:
    """First known directory holding at least one dump table, or None."""
    for d in AUTO_DETECT_PATHS:
        try:
            if d.is_dir() and any(d.glob(pattern)):
                return d
        except OSError:
            continue
    return None


def ensure_config(project_root: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load config and fill mapping_dir from auto-detection when unset.
    Returns merged config; nothing is written back.
    """
    config = load_config(project_root)
    if not config.get("mapping_dir"):
        detected = auto_detect_mapping_dir(config.get("mapping_glob") or "dump_*.csv")
        if detected:
            config["mapping_dir"] = str(detected)
            logger.info(f"Auto-detected mapping dir: {detected}")
    return config
