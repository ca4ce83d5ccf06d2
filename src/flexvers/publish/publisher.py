"""Idempotent tag publishing.

Protocol, per run and in this order:

1. Look the tag up. If it points at the target commit the run is a re-run
   and nothing is written (``existed=True``). If it points elsewhere the
   version is being reused: ``PublishError(CONFLICT)``.
2. Otherwise create it. When creation loses a race against another run,
   read the tag again and apply the same rule as in step 1.
3. Optionally create the hosted release.

No lock is taken on the remote tag namespace. Tags are immutable once
created, so the provider's create-if-absent call plus the read-after-write
check decide the outcome.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from flexvers.exceptions import PublishError, PublishErrorKind, TagAlreadyExistsError

if TYPE_CHECKING:
    from flexvers.core.version import Version
    from flexvers.providers.base import Provider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TagRecord:
    """Result of one publish.

    Attributes:
        version: Published version
        tag_name: Tag name on the provider
        commit_id: Commit the tag points at
        provider: Provider name
        existed: True when the tag was already there and nothing was written
        release_url: URL of the hosted release, when one was created
        dry_run: True when nothing was written because of a dry run
    """

    version: Version
    tag_name: str
    commit_id: str
    provider: str
    existed: bool
    release_url: str | None = None
    dry_run: bool = False


def _check_existing(tag_name: str, existing: str, commit_id: str, provider: str) -> None:
    if existing != commit_id:
        raise PublishError(
            f"Tag {tag_name} already exists on {provider} at {existing[:12]}, "
            f"refusing to reuse it for {commit_id[:12]}",
            PublishErrorKind.CONFLICT,
        )


def publish(
    version: Version,
    commit_id: str,
    provider: Provider,
    *,
    tag_prefix: str = "v",
    message: str = "",
    create_release: bool = False,
    dry_run: bool = False,
) -> TagRecord:
    """Create the version tag on the provider unless it already exists.

    Args:
        version: Version to publish
        commit_id: Commit the tag must point at
        provider: Provider adapter
        tag_prefix: Prefix of the tag name
        message: Tag message; also the release body
        create_release: Also create a hosted release
        dry_run: Only check for the tag, never write

    Returns:
        The tag record; ``existed`` is True for an idempotent re-run

    Raises:
        PublishError: ``CONFLICT`` if the tag points at another commit,
            other kinds for provider or network failures
    """
    tag_name = version.tag_name(tag_prefix)
    existing = provider.get_tag_commit(tag_name)

    if existing is not None:
        _check_existing(tag_name, existing, commit_id, provider.name)
        logger.info("Tag %s already exists at %s, nothing to do", tag_name, commit_id[:12])
        existed = True
    elif dry_run:
        logger.info(
            "Dry run: would create tag %s at %s on %s", tag_name, commit_id[:12], provider.name
        )
        return TagRecord(version, tag_name, commit_id, provider.name, existed=False, dry_run=True)
    else:
        try:
            provider.create_tag(tag_name, commit_id, message)
            existed = False
            logger.info("Created tag %s at %s on %s", tag_name, commit_id[:12], provider.name)
        except TagAlreadyExistsError:
            # Another run created it between the lookup and the create.
            existing = provider.get_tag_commit(tag_name)
            if existing is None:
                raise PublishError(
                    f"{provider.name} reported tag {tag_name} as existing but it cannot be read",
                    PublishErrorKind.PROVIDER_ERROR,
                ) from None
            _check_existing(tag_name, existing, commit_id, provider.name)
            logger.info("Tag %s was created concurrently at the same commit", tag_name)
            existed = True

    release_url = None
    if create_release and provider.supports_releases and not dry_run:
        # Also runs for existing tags so a run interrupted after tagging
        # still gets its release; providers treat duplicates as a no-op.
        release_url = provider.create_release(
            tag_name,
            name=tag_name,
            body=message,
            prerelease=version.is_prerelease,
            commit_id=commit_id,
        )

    return TagRecord(
        version=version,
        tag_name=tag_name,
        commit_id=commit_id,
        provider=provider.name,
        existed=existed,
        release_url=release_url,
        dry_run=dry_run,
    )
