"""
Node connection settings.

Credentials come from the node's own config file (``key=value`` lines,
``~/.zcash/zcash.conf`` unless ZCASH_CONF says otherwise). Environment
variables override the file:

    ZCASH_RPC_URL      endpoint, default http://127.0.0.1:8232/
    ZCASH_RPC_USER     basic-auth username
    ZCASH_RPC_PASS     basic-auth password
    ZCASH_RPC_TIMEOUT  request timeout in seconds

A missing or unreadable config file is not fatal: it is logged and the
credentials stay empty, leaving the node to reject the call if it
needs them.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

logger = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8232
DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True)
class NodeConfig:
    """How to reach and authenticate to the node."""

    url: str = f"http://{DEFAULT_HOST}:{DEFAULT_PORT}/"
    username: str = ""
    password: str = ""
    timeout: float = DEFAULT_TIMEOUT

    @property
    def auth(self) -> tuple[str, str] | None:
        if not self.username:
            return None
        return (self.username, self.password)


def default_conf_path(env: Mapping[str, str] | None = None) -> Path:
    env = os.environ if env is None else env
    override = env.get("ZCASH_CONF")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".zcash" / "zcash.conf"


def parse_conf(text: str) -> dict[str, str]:
    """Parse ``key=value`` lines. Later keys win; comments are skipped."""
    values: dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        values[key.strip()] = value.strip()
    return values


def read_conf(path: Path) -> dict[str, str]:
    """Read the node config file, returning {} when it cannot be read."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        logger.warning("error reading zcash config %s: %s", path, exc)
        return {}
    return parse_conf(text)


def load_config(
    conf_path: Path | str | None = None,
    env: Mapping[str, str] | None = None,
    *,
    url: str | None = None,
) -> NodeConfig:
    """Build a NodeConfig from the config file, environment and overrides.

    Args:
        conf_path: Node config file. Defaults to default_conf_path().
        env: Environment mapping. Defaults to os.environ.
        url: Explicit endpoint, wins over everything else.
    """
    env = os.environ if env is None else env
    path = Path(conf_path).expanduser() if conf_path else default_conf_path(env)
    conf = read_conf(path)

    host = conf.get("rpcconnect", DEFAULT_HOST)
    port = conf.get("rpcport", str(DEFAULT_PORT))
    endpoint = url or env.get("ZCASH_RPC_URL") or f"http://{host}:{port}/"

    timeout = DEFAULT_TIMEOUT
    raw_timeout = env.get("ZCASH_RPC_TIMEOUT")
    if raw_timeout:
        try:
            timeout = float(raw_timeout)
        except ValueError:
            logger.warning("ignoring invalid ZCASH_RPC_TIMEOUT %r", raw_timeout)

    return NodeConfig(
        url=endpoint,
        username=env.get("ZCASH_RPC_USER", conf.get("rpcuser", "")),
        password=env.get("ZCASH_RPC_PASS", conf.get("rpcpassword", "")),
        timeout=timeout,
    )
