"""Profile loading and validation for YAML-based iconnect device profiles."""

from __future__ import annotations

import functools
import json
import logging
import os
from dataclasses import dataclass
from importlib import resources
from importlib.resources.abc import Traversable
from pathlib import Path
from typing import Any

import yaml
from jsonschema import ValidationError, validators

from iconnect.core.errors import IConnectError, ProfileLoadError, ProfileValidationError
from iconnect.core.model import DeviceProfile, ShapeRule, WeightRange

LOGGER = logging.getLogger(__name__)


class UniqueKeyLoader(yaml.SafeLoader):
    """YAML loader that rejects duplicate mapping keys."""


UniqueKeyLoader.yaml_implicit_resolvers = {
    key: list(value) for key, value in yaml.SafeLoader.yaml_implicit_resolvers.items()
}

for first_char, mappings in list(UniqueKeyLoader.yaml_implicit_resolvers.items()):
    UniqueKeyLoader.yaml_implicit_resolvers[first_char] = [
        (tag, regexp)
        for tag, regexp in mappings
        if tag != "tag:yaml.org,2002:bool"
    ]


def _construct_mapping(loader: UniqueKeyLoader, node: yaml.Node, deep: bool = False) -> dict[str, Any]:
    mapping: dict[str, Any] = {}
    for key_node, value_node in node.value:
        key = loader.construct_object(key_node, deep=deep)
        if key in mapping:
            raise ProfileValidationError(f"Duplicate key '{key}' in YAML document")
        mapping[key] = loader.construct_object(value_node, deep=deep)
    return mapping


UniqueKeyLoader.add_constructor(
    yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG,
    _construct_mapping,
)


@dataclass(frozen=True)
class LoadedProfiles:
    profiles: tuple[DeviceProfile, ...]
    warnings: tuple[str, ...]


def load_schema_validator(schema_name: str) -> Any:
    schema_text = resources.files("iconnect.schemas").joinpath(schema_name).read_text(
        encoding="utf-8"
    )
    schema = json.loads(schema_text)
    validator_cls = validators.validator_for(schema)
    validator_cls.check_schema(schema)
    return validator_cls(schema)


def validate_document(
    validator: Any,
    doc: Any,
    source: Path | Traversable | str,
    *,
    error_cls: type[IConnectError] = ProfileValidationError,
) -> None:
    try:
        validator.validate(doc)
    except ValidationError as exc:
        path = ".".join(str(p) for p in exc.path)
        where = f" ({path})" if path else ""
        raise error_cls(f"Schema validation failed for {source}{where}: {exc.message}") from exc


def _profile_dirs() -> tuple[Path, Path]:
    xdg_config = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    xdg_data = Path(os.environ.get("XDG_DATA_HOME", Path.home() / ".local/share"))
    return xdg_config / "iconnect/profiles", xdg_data / "iconnect/profiles"


def read_yaml(
    path: Path | Traversable,
    *,
    load_error: type[IConnectError] = ProfileLoadError,
    validation_error: type[IConnectError] = ProfileValidationError,
) -> dict[str, Any]:
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise load_error(f"Could not read {path}: {exc}") from exc

    try:
        loaded = yaml.load(content, Loader=UniqueKeyLoader)
    except ProfileValidationError as exc:
        raise validation_error(f"{exc} ({path})") from exc
    except yaml.YAMLError as exc:
        raise validation_error(f"Invalid YAML in {path}: {exc}") from exc

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise validation_error(f"File {path} must contain a mapping at root")
    return loaded


def _default_search_term(name: str) -> str:
    words = name.split()
    return words[0] if words else name


def _build_profile(doc: dict[str, Any], source: Path | Traversable, validator: Any) -> DeviceProfile:
    validate_document(validator, doc, source)

    weight: WeightRange | None = None
    if "weight" in doc:
        weight = WeightRange(
            min_g=float(doc["weight"]["min_g"]),
            max_g=float(doc["weight"]["max_g"]),
        )
        if weight.min_g > weight.max_g:
            raise ProfileValidationError(
                f"{doc['id']}.weight: min_g {weight.min_g} exceeds max_g {weight.max_g} ({source})"
            )

    shape: ShapeRule | None = None
    if "shape" in doc:
        shape = ShapeRule(
            aspect_min=float(doc["shape"]["aspect_min"]),
            aspect_max=float(doc["shape"]["aspect_max"]),
            min_major=float(doc["shape"].get("min_major", 0.0)),
        )
        if shape.aspect_min > shape.aspect_max:
            raise ProfileValidationError(
                f"{doc['id']}.shape: aspect_min {shape.aspect_min} exceeds aspect_max "
                f"{shape.aspect_max} ({source})"
            )

    search_term = str(doc.get("search_term") or _default_search_term(doc["name"])).strip()
    if not search_term:
        raise ProfileValidationError(f"{doc['id']}.search_term must not be empty ({source})")

    return DeviceProfile(
        id=doc["id"],
        name=doc["name"],
        search_term=search_term,
        weight=weight,
        shape=shape,
    )


def _profile_docs(doc: dict[str, Any], source: Path | Traversable) -> list[dict[str, Any]]:
    if "profiles" not in doc:
        return [doc]
    docs = doc["profiles"]
    if not isinstance(docs, list) or not all(isinstance(item, dict) for item in docs):
        raise ProfileValidationError(f"'profiles' in {source} must be a list of mappings")
    return docs


def _packaged_presets_path() -> Traversable:
    return resources.files("iconnect.profiles").joinpath("presets.yaml")


def _iter_user_profile_paths() -> list[Path]:
    paths: list[Path] = []
    for directory in _profile_dirs():
        if not directory.exists() or not directory.is_dir():
            continue
        paths.extend(sorted(p for p in directory.iterdir() if p.suffix in {".yml", ".yaml"}))
    return paths


def load_profiles() -> LoadedProfiles:
    validator = load_schema_validator("profile.schema.json")
    profiles: dict[str, DeviceProfile] = {}
    warnings: list[str] = []

    packaged = _packaged_presets_path()
    for doc in _profile_docs(read_yaml(packaged), packaged):
        profile = _build_profile(doc, packaged, validator)
        if profile.id in profiles:
            raise ProfileValidationError(f"Duplicate profile id '{profile.id}' in {packaged}")
        profiles[profile.id] = profile

    for path in _iter_user_profile_paths():
        for doc in _profile_docs(read_yaml(path), path):
            profile = _build_profile(doc, path, validator)
            if profile.id in profiles:
                warning = f"User profile '{profile.id}' overrides packaged profile"
                LOGGER.warning(warning)
                warnings.append(warning)
            # Reassigning an existing key keeps its position in the table.
            profiles[profile.id] = profile

    return LoadedProfiles(profiles=tuple(profiles.values()), warnings=tuple(warnings))


@functools.lru_cache(maxsize=1)
def default_profiles() -> LoadedProfiles:
    return load_profiles()
