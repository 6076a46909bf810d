"""Elasticsearch entrypoint and Kibana service-token provisioning.

Service tokens are managed with the file-based
``elasticsearch-service-tokens`` CLI, so the token is provisioned before
Elasticsearch itself is started. Tokens are named
``kibana-token-<epoch seconds>`` so old ones can be aged out.
"""

from __future__ import annotations

import datetime as dt
import logging
import re
from collections.abc import Callable
from dataclasses import dataclass

from stackstrap.config import ElasticsearchSettings
from stackstrap.domain.errors import ToolError
from stackstrap.domain.results import CommandResult
from stackstrap.interfaces.command_runner import CommandRunner

from .common import as_user, atomic_write_text, fix_permissions

logger = logging.getLogger(__name__)

SERVICE_TOKEN_PATTERN = re.compile(r"^SERVICE_TOKEN\s+\S+\s*=\s*(\S+)\s*$")
SECONDS_PER_DAY = 24 * 3600

Clock = Callable[[], dt.datetime]


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def parse_service_token(result: CommandResult) -> str | None:
    """Extract the token value from ``SERVICE_TOKEN <account>/<name> = <value>``."""
    for line in result.lines():
        if match := SERVICE_TOKEN_PATTERN.match(line):
            return match.group(1)
    return None


def token_timestamp(name: str, prefix: str) -> int | None:
    suffix = name.removeprefix(prefix)
    if suffix == name or not suffix.isdigit():
        return None
    return int(suffix)


@dataclass(frozen=True)
class TokenProvisioning:
    token_name: str | None
    reused: bool
    removed: tuple[str, ...] = ()


class ServiceTokens:
    """Thin wrapper over ``elasticsearch-service-tokens``."""

    def __init__(
        self, runner: CommandRunner, settings: ElasticsearchSettings, privileged: bool
    ) -> None:
        self._runner = runner
        self._settings = settings
        self._privileged = privileged

    def _argv(self, *args: str) -> list[str]:
        # the tool edits config/service_tokens, which must stay owned by ES
        return as_user(
            [str(self._settings.service_tokens_bin), *args],
            self._settings.run_as,
            self._privileged,
        )

    def list_names(self) -> list[str]:
        result = self._runner.run(
            self._argv("list", self._settings.service_account)
        )
        if not result.ok:
            logger.warning("Could not list service tokens: %s", result.stderr.strip())
            return []
        # lines look like "elastic/kibana/kibana-token-1700000000"
        return [line.rsplit("/", 1)[-1] for line in result.lines()]

    def delete(self, name: str) -> bool:
        result = self._runner.run(
            self._argv("delete", self._settings.service_account, name)
        )
        return result.ok

    def create(self, name: str) -> str:
        argv = self._argv("create", self._settings.service_account, name)
        result = self._runner.check(argv)
        if (token := parse_service_token(result)) is None:
            raise ToolError(argv, 1, "no SERVICE_TOKEN line in output")
        return token

    def remove_older_than(self, max_age_days: int, now: dt.datetime) -> list[str]:
        """Delete prefix-named tokens older than `max_age_days`; failures are ignored."""
        cutoff = int(now.timestamp()) - max_age_days * SECONDS_PER_DAY
        removed: list[str] = []
        for name in self.list_names():
            created = token_timestamp(name, self._settings.token_prefix)
            if created is None or created >= cutoff:
                continue
            if self.delete(name):
                logger.info("Removed old token %s", name)
                removed.append(name)
            else:
                logger.warning("Could not remove old token %s", name)
        return removed


def provision_token(
    tokens: ServiceTokens, settings: ElasticsearchSettings, clock: Clock = _utcnow
) -> TokenProvisioning:
    """Make sure the shared token file holds a valid Kibana service token."""
    token_file = settings.token_file
    if not settings.force_new_token and token_file.is_file() and token_file.stat().st_size:
        logger.info("Using existing token from %s (FORCE_NEW_TOKEN=false)", token_file)
        return TokenProvisioning(token_name=None, reused=True)

    # Kibana treats the file as ready; drop it until the new token exists
    if token_file.exists():
        logger.info("Removing previous token file %s", token_file)
        token_file.unlink(missing_ok=True)

    now = clock()
    removed: list[str] = []
    if settings.cleanup_old_tokens:
        removed = tokens.remove_older_than(settings.max_token_age_days, now)

    token_name = f"{settings.token_prefix}{int(now.timestamp())}"
    logger.info("Creating service token %s for %s", token_name, settings.service_account)
    token = tokens.create(token_name)
    atomic_write_text(token_file, token + "\n", mode=0o644)
    logger.info("New token saved to %s", token_file)
    return TokenProvisioning(token_name=token_name, reused=False, removed=tuple(removed))


def prepare_elasticsearch(
    settings: ElasticsearchSettings,
    runner: CommandRunner,
    *,
    privileged: bool,
    clock: Clock = _utcnow,
) -> list[str]:
    """Fix data dir permissions, provision the Kibana token, return ES argv."""
    if privileged:
        fix_permissions([settings.data_dir], settings.run_as)
    settings.token_file.parent.mkdir(parents=True, exist_ok=True)
    provision_token(ServiceTokens(runner, settings, privileged), settings, clock=clock)
    return [str(settings.elasticsearch_bin)]
