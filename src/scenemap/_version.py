"""Utilities for retrieving and validating the package version."""

def _version_from_sources() -> str:
    """Return the version declared in the repository ``pyproject.toml``.

    Used in development checkouts where the distribution metadata has not
    been generated yet.
    """

    from pathlib import Path

    try:  # Python 3.11+
        import tomllib  # type: ignore[attr-defined]
    except ModuleNotFoundError:  # pragma: no cover - Python < 3.11 fallback
        import tomli as tomllib  # type: ignore

    for parent in Path(__file__).resolve().parents[:3]:
        candidate = parent / "pyproject.toml"
        if not candidate.is_file():
            continue
        with candidate.open("rb") as handle:
            payload = tomllib.load(handle)
        version = payload.get("project", {}).get("version")
        if isinstance(version, str):
            return version

    raise RuntimeError(
        "Unable to determine the 'scenemap' version from package metadata or "
        "repository sources."
    )


from importlib import metadata

from packaging.version import InvalidVersion, Version


def _load_version() -> str:
    """Return the validated package version (``MAJOR.MINOR.PATCH``)."""

    package_name = "scenemap"

    try:
        raw_version = metadata.version(package_name)
    except metadata.PackageNotFoundError:
        raw_version = _version_from_sources()

    try:
        parsed = Version(raw_version)
    except InvalidVersion as exc:
        raise RuntimeError(
            "Invalid version string for 'scenemap': "
            f"{raw_version!r}. Expected a semantic version."
        ) from exc

    if len(parsed.release) != 3:
        raise RuntimeError(
            "The 'scenemap' version must follow the MAJOR.MINOR.PATCH format. "
            f"Found: {raw_version!r}."
        )

    return raw_version


__version__ = _load_version()

__all__ = ["__version__"]
