"""Kibana entrypoint (token handoff).

States: fix permissions, wait for the service account token file written
by the Elasticsearch container, embed the token (and optional encryption
key) into ``kibana.yml``, hand off to the Kibana binary.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any

import yaml

from stackstrap.config import KibanaSettings
from stackstrap.domain.errors import ConfigFileError, EmptyTokenError
from stackstrap.service_layer.waiters import Sleep, await_file

from .common import atomic_write_text, fix_permissions

logger = logging.getLogger(__name__)

TOKEN_SETTING = "elasticsearch.serviceAccountToken"
ENCRYPTION_KEY_SETTING = "xpack.encryptedSavedObjects.encryptionKey"


def read_token(path: Path) -> str:
    """Read the token file once; surrounding whitespace is not part of the token.

    Raises:
        EmptyTokenError: If the file holds nothing but whitespace.
    """
    if not (token := path.read_text(encoding="utf-8").strip()):
        raise EmptyTokenError(str(path))
    return token


def set_setting(document: dict[str, Any], dotted_key: str, value: Any) -> None:
    """Set `dotted_key` in a Kibana YAML document.

    Kibana accepts both flat (``a.b.c: v``) and nested keys. An existing flat
    key is replaced; otherwise the value goes into an existing nested mapping
    when there is one, or is added as a flat key.
    """
    if dotted_key in document:
        document[dotted_key] = value
        return
    head, _, rest = dotted_key.partition(".")
    if rest and isinstance(node := document.get(head), dict):
        set_setting(node, rest, value)
        return
    document[dotted_key] = value


def load_document(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        document = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigFileError(str(path), f"invalid YAML: {e}") from e
    if document is None:
        return {}
    if not isinstance(document, dict):
        raise ConfigFileError(str(path), "top level is not a mapping")
    return document


def render_kibana_config(path: Path, token: str, encryption_key: str | None) -> None:
    """Write the token (and encryption key, if given) into ``kibana.yml``."""
    document = load_document(path)
    set_setting(document, TOKEN_SETTING, token)
    if encryption_key:
        set_setting(document, ENCRYPTION_KEY_SETTING, encryption_key)
    atomic_write_text(
        path, yaml.safe_dump(document, sort_keys=False, default_flow_style=False)
    )
    logger.info("Populated %s in %s", TOKEN_SETTING, path)


def prepare_kibana(
    settings: KibanaSettings, *, privileged: bool, sleep: Sleep = time.sleep
) -> list[str]:
    """Run Kibana's pre-start states and return its start command."""
    if privileged:
        fix_permissions([settings.data_dir], settings.run_as)
    await_file(settings.token_file, settings.token_wait, sleep=sleep)
    token = read_token(settings.token_file)
    logger.info("Loaded service token from %s", settings.token_file)
    render_kibana_config(settings.config_path, token, settings.encryption_key)
    return [str(settings.kibana_bin)]
