from __future__ import annotations
"""
commit_escrow.config - runtime settings for the escrow ledger and verifier.

Covers:
- The ledger's own address (native custody account and token spender)
- The personal-sign prefix used to build the signed-message hash
- Signature strictness (reject high-s / malleable signatures)
- Log level used by the CLI

Environment overrides (all optional; defaults below):

  ESCROW_LEDGER_ADDRESS=0x00000000000000000000000000000000000e5c00
  ESCROW_MESSAGE_PREFIX="\\x19Ethereum Signed Message:\\n"   # \\xNN, \\uNNNN, \\n, \\r, \\t escapes decoded
  ESCROW_REJECT_HIGH_S=0
  ESCROW_LOG_LEVEL=WARNING

You can also load from a JSON or YAML file via `ESCROW_CONFIG_FILE=/path/to/config.(json|yaml|yml)`.
File values override defaults; environment overrides the file.
"""


from dataclasses import dataclass, asdict, replace
from typing import Any, Dict, Optional
import codecs
import json
import logging
import os
import re
from pathlib import Path

import yaml

from .hashing import PERSONAL_SIGN_PREFIX, to_address

DEFAULT_LEDGER_ADDRESS = "0x00000000000000000000000000000000000e5c00"

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


@dataclass(frozen=True)
class EscrowConfig:
    """Top-level configuration container."""
    ledger_address: str = DEFAULT_LEDGER_ADDRESS
    message_prefix: str = PERSONAL_SIGN_PREFIX
    reject_high_s: bool = False
    log_level: str = "WARNING"

    def validate(self) -> None:
        # raises InvalidAddress on a bad value
        to_address(self.ledger_address)
        if not self.message_prefix:
            raise ValueError("message_prefix must be non-empty.")
        if self.log_level.upper() not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {_LOG_LEVELS} (got {self.log_level!r}).")

    @property
    def ledger_address_bytes(self) -> bytes:
        return to_address(self.ledger_address)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# -------------------------- Loaders --------------------------


def _parse_bool(name: str, v: Any) -> bool:
    if isinstance(v, bool):
        return v
    s = str(v).strip().lower()
    if s in ("1", "true", "yes", "on"):
        return True
    if s in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"Invalid bool for {name}: {v!r}")


def _getenv_bool(name: str, default: bool) -> bool:
    v = os.getenv(name)
    if v is None or v == "":
        return default
    return _parse_bool(name, v)


# Only backslash escapes are decoded; other characters pass through untouched.
_ESCAPE_RE = re.compile(r"\\(?:x[0-9a-fA-F]{2}|u[0-9a-fA-F]{4}|[nrt0\\])")


def _decode_escapes(s: str) -> str:
    return _ESCAPE_RE.sub(lambda m: codecs.decode(m.group(0), "unicode_escape"), s)


def _getenv_str(name: str, default: str) -> str:
    v = os.getenv(name)
    return default if v is None or v == "" else v


def from_env(base: Optional[EscrowConfig] = None, prefix: str = "ESCROW_") -> EscrowConfig:
    """
    Build an EscrowConfig from environment variables, optionally layering on top of `base`.
    """
    cfg = base or EscrowConfig()

    # The prefix is usually given with literal escapes in shells/.env files.
    msg_prefix = _getenv_str(f"{prefix}MESSAGE_PREFIX", "")
    if msg_prefix:
        msg_prefix = _decode_escapes(msg_prefix)

    new_cfg = EscrowConfig(
        ledger_address=_getenv_str(f"{prefix}LEDGER_ADDRESS", cfg.ledger_address),
        message_prefix=msg_prefix or cfg.message_prefix,
        reject_high_s=_getenv_bool(f"{prefix}REJECT_HIGH_S", cfg.reject_high_s),
        log_level=_getenv_str(f"{prefix}LOG_LEVEL", cfg.log_level).upper(),
    )
    new_cfg.validate()
    return new_cfg


def from_file(path: str | os.PathLike[str]) -> EscrowConfig:
    """
    Load configuration from a JSON or YAML file.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(p)

    text = p.read_text(encoding="utf-8")
    if p.suffix.lower() in (".yaml", ".yml"):
        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text or "{}")

    defaults = EscrowConfig()
    cfg = replace(
        defaults,
        ledger_address=str(data.get("ledger_address", defaults.ledger_address)),
        message_prefix=str(data.get("message_prefix", defaults.message_prefix)),
        reject_high_s=_parse_bool("reject_high_s", data.get("reject_high_s", defaults.reject_high_s)),
        log_level=str(data.get("log_level", defaults.log_level)).upper(),
    )
    cfg.validate()
    return cfg


def load() -> EscrowConfig:
    """
    Load configuration using the following precedence:
      1) File at $ESCROW_CONFIG_FILE (JSON/YAML)
      2) Environment variables (ESCROW_*), applied on top of defaults or file values
    """
    file_path = os.getenv("ESCROW_CONFIG_FILE")
    base = from_file(file_path) if file_path else EscrowConfig()
    return from_env(base=base)


# -------------------------- Utilities --------------------------


def configure_logging(cfg: Optional[EscrowConfig] = None) -> None:
    """Install a basic stderr handler at the configured level (CLI entry points only)."""
    level = (cfg or load()).log_level
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def pretty(cfg: Optional[EscrowConfig] = None) -> str:
    """Return a human-readable JSON string of the current config."""
    obj = (cfg or load()).to_dict()
    return json.dumps(obj, indent=2, sort_keys=True)


__all__ = [
    "DEFAULT_LEDGER_ADDRESS",
    "EscrowConfig",
    "from_env",
    "from_file",
    "load",
    "configure_logging",
    "pretty",
]
