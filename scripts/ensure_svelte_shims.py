from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path, PurePosixPath
import sys
from typing import Callable, Sequence


SHIM_FILENAMES: tuple[str, ...] = ("svelte-native-jsx.d.ts", "svelte-shims-v4.d.ts")
CANDIDATE_MODULE_ROOTS: tuple[str, ...] = ("svelte-check/dist/src", "svelte2tsx")
DESTINATION_DIRNAME = ".svelte2tsx-language-server-files"
WARNING_PREFIX = "[ensure-svelte-shims]"

ModuleResolver = Callable[[str], Path | None]


class SyncOutcome(str, Enum):
    written = "written"
    skipped_unchanged = "skipped-unchanged"
    missing = "missing"


@dataclass(frozen=True, slots=True)
class ShimSyncConfig:
    shim_filenames: tuple[str, ...]
    candidate_roots: tuple[str, ...]
    destination_dir: Path
    search_start: Path


def _script_dir() -> Path:
    return Path(__file__).resolve().parent


def _default_config() -> ShimSyncConfig:
    script_dir = _script_dir()
    return ShimSyncConfig(
        shim_filenames=SHIM_FILENAMES,
        candidate_roots=CANDIDATE_MODULE_ROOTS,
        destination_dir=script_dir.parent / "node_modules" / DESTINATION_DIRNAME,
        search_start=script_dir,
    )


def _node_modules_dirs(*, start: Path) -> list[Path]:
    lookup_dirs: list[Path] = []
    for directory in (start, *start.parents):
        if directory.name == "node_modules":
            continue
        lookup_dirs.append(directory / "node_modules")
    return lookup_dirs


def resolve_module_path(*, request: str, start: Path) -> Path | None:
    """Resolve a package-relative file path the way Node looks up ``node_modules``.

    Every ancestor of ``start`` contributes a ``node_modules`` directory,
    nearest first. The first candidate that is a regular file is returned as
    its real path, so symlinked installs resolve to the linked target.
    Package ``exports`` maps and extension fallbacks are not applied.
    """
    relative = PurePosixPath(request)
    if not request or relative.is_absolute():
        raise ValueError(f"Expected a package-relative module request, got: {request!r}")

    for lookup_dir in _node_modules_dirs(start=start.resolve()):
        candidate = lookup_dir.joinpath(*relative.parts)
        if candidate.is_file():
            return candidate.resolve()
    return None


def _node_module_resolver(*, start: Path) -> ModuleResolver:
    def resolve(request: str) -> Path | None:
        return resolve_module_path(request=request, start=start)

    return resolve


def resolve_shim(
    *,
    filename: str,
    candidate_roots: Sequence[str],
    resolve_module: ModuleResolver,
) -> Path | None:
    for root in candidate_roots:
        resolved = resolve_module(str(PurePosixPath(root, filename)))
        if resolved is not None:
            return resolved
    return None


def ensure_destination(*, destination_dir: Path) -> None:
    destination_dir.mkdir(parents=True, exist_ok=True)


def synchronize_one(
    *,
    filename: str,
    destination_dir: Path,
    resolve: ModuleResolver,
) -> SyncOutcome:
    source = resolve(filename)
    if source is None:
        return SyncOutcome.missing

    # Read errors past this point are fatal; only resolution is allowed to miss.
    source_content = source.read_bytes()
    destination = destination_dir / filename
    if destination.exists() and destination.read_bytes() == source_content:
        return SyncOutcome.skipped_unchanged

    destination.write_bytes(source_content)
    return SyncOutcome.written


def _format_missing_warning(*, missing: Sequence[str]) -> str:
    noun = "shims" if len(missing) > 1 else "shim"
    return f"{WARNING_PREFIX} Unable to locate {noun}: {', '.join(missing)}"


def ensure_shims(
    *,
    config: ShimSyncConfig,
    resolve_module: ModuleResolver | None = None,
) -> dict[str, SyncOutcome]:
    module_resolver = resolve_module or _node_module_resolver(start=config.search_start)

    def resolve(filename: str) -> Path | None:
        return resolve_shim(
            filename=filename,
            candidate_roots=config.candidate_roots,
            resolve_module=module_resolver,
        )

    ensure_destination(destination_dir=config.destination_dir)

    outcomes: dict[str, SyncOutcome] = {}
    missing: list[str] = []
    for filename in config.shim_filenames:
        outcome = synchronize_one(
            filename=filename,
            destination_dir=config.destination_dir,
            resolve=resolve,
        )
        outcomes[filename] = outcome
        if outcome is SyncOutcome.missing:
            missing.append(filename)

    if missing:
        print(_format_missing_warning(missing=missing), file=sys.stderr)
    return outcomes


def main(*, argv: Sequence[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    if argv:
        raise ValueError("This script does not accept positional arguments.")
    ensure_shims(config=_default_config())
    return 0


if __name__ == "__main__":
    raise SystemExit(main(argv=sys.argv[1:]))
