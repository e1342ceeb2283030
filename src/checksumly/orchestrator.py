# ------------------------------
# src/checksumly/orchestrator.py
# ------------------------------
from __future__ import annotations

import logging

from .config import ChecksumConfig
from .diff_engine import diff
from .manifest import load_header, manifest_state, read_scope, render_lines, write_full, write_spliced
from .models import (
    CheckResult,
    FileTypeFilter,
    Header,
    ManifestState,
    Scope,
    UpdateReason,
    UpdateResult,
)
from .path_utils import display_path, render_reldir, to_relative
from .scanner import get_hasher, scan, utc_mod_time

logger = logging.getLogger(__name__)


# ------------------------------
# Helpers
# ------------------------------
def resolve_file_types(config: ChecksumConfig) -> FileTypeFilter:
    """Explicit filter wins; "*" or none inherits the existing table's, else "*"."""
    requested = FileTypeFilter.parse(config.file_types)
    if not requested.matches_all:
        return requested
    if manifest_state(config.hash_file) is ManifestState.INITIALIZED:
        return load_header(config.hash_file).file_types
    return requested


def build_header(config: ChecksumConfig, file_types: FileTypeFilter) -> Header:
    return Header(display_path(config.base_dir, config.work_dir), file_types)


def build_scope(config: ChecksumConfig, file_types: FileTypeFilter) -> Scope:
    return Scope(render_reldir(to_relative(config.scope_dir, config.base_dir)), file_types)


def _transition(current: ManifestState, target: ManifestState) -> ManifestState:
    logger.debug(f"State: {current.value} -> {target.value}")
    return target


def _scan(config: ChecksumConfig, scope: Scope, hasher=None, mod_time=None, on_error=None):
    return scan(
        config.scope_dir,
        config.base_dir,
        scope.file_types,
        hasher=hasher or get_hasher(config.hash_algorithm),
        mod_time=mod_time or utc_mod_time,
        exclude=config.excluded_paths,
        on_error=on_error,
    )


# ------------------------------
# Update
# ------------------------------
def update(config: ChecksumConfig, *, hasher=None, mod_time=None) -> UpdateResult:
    """
    Create the hash table, or refresh the block of `config.scope_dir` in it.

    Nothing is written when the rescanned block equals the stored one,
    unless `config.force` is set. A ScanError aborts before any write.
    """
    state = manifest_state(config.hash_file)
    file_types = resolve_file_types(config)
    header = build_header(config, file_types)
    scope = build_scope(config, file_types)

    logger.info(f'File: "{config.hash_file.name}"')

    if state is ManifestState.UNINITIALIZED:
        logger.info("Generating hash table.")
        state = _transition(state, ManifestState.UPDATING)
        entries = _scan(config, scope, hasher, mod_time)
        write_full(config.hash_file, header, entries)
        _transition(state, ManifestState.INITIALIZED)
        logger.info(f"Hash table created with {len(entries)} entries.")
        return UpdateResult(True, UpdateReason.CREATED, scope.reldir, len(entries))

    logger.info("Reading hash table.")
    scope_read = read_scope(config.hash_file, scope, for_update=True, expected=header)
    state = _transition(state, ManifestState.UPDATING)

    logger.info(f"Updating hash table for {scope.reldir} ...")
    fresh = render_lines(_scan(config, scope, hasher, mod_time))

    if not config.force and scope_read.marker.matches(fresh):
        _transition(state, ManifestState.INITIALIZED)
        logger.info("Nothing to update.")
        return UpdateResult(False, UpdateReason.NOTHING_TO_UPDATE, scope.reldir, len(fresh))

    logger.info("Writing file ...")
    write_spliced(config.hash_file, header, scope_read, fresh)
    _transition(state, ManifestState.INITIALIZED)

    reason = UpdateReason.FORCED if config.force else UpdateReason.UPDATED
    return UpdateResult(True, reason, scope.reldir, len(fresh))


# ------------------------------
# Check
# ------------------------------
def check(config: ChecksumConfig, *, hasher=None, mod_time=None) -> CheckResult:
    """
    Compare the stored block of `config.scope_dir` with the live tree.

    Never writes. A missing table is an error, not an invitation to create one.
    With `config.keep_going`, unreadable entries are collected in
    `CheckResult.errors` instead of aborting the check.
    """
    file_types = resolve_file_types(config)
    header = build_header(config, file_types)
    scope = build_scope(config, file_types)

    logger.info(f'File: "{config.hash_file.name}"')
    logger.info("Reading hash table.")
    scope_read = read_scope(config.hash_file, scope, for_update=False, expected=header)
    state = _transition(ManifestState.INITIALIZED, ManifestState.CHECKING)

    errors: list = []
    on_error = errors.append if config.keep_going else None

    logger.info(f"Checking {scope.reldir} ...")
    fresh = render_lines(_scan(config, scope, hasher, mod_time, on_error))
    _transition(state, ManifestState.INITIALIZED)

    if not config.force and list(scope_read.inside) == fresh:
        return CheckResult(False, (), scope.reldir, tuple(errors))

    report = diff(scope_read.inside, fresh, scope)
    return CheckResult(bool(report.changes), report.changes, scope.reldir, tuple(errors))
