"""
YAML manifests as a desired-state record store.

A manifest file holds one YAML document per managed resource:

    apiVersion: cassandra.cql.crossplane.io/v1alpha1
    kind: Keyspace | Role | Grant
    metadata:
      name: ...
      annotations: {crossplane.io/external-name: ...}   # optional
      deletionTimestamp: ...                            # optional, requests deletion
    spec:
      forProvider: {...}
      writeConnectionSecretToRef: {name: ...}           # roles only

Documents of any other kind are kept untouched and skipped.

`ManifestStore` implements `ResourceStore`: late-initialized fields, external
names and status are written back into the same file. `DirectorySecretStore`
implements `SecretStore` with one Secret document per role.
"""

from __future__ import annotations

import os
import threading
from collections.abc import Callable, Mapping, Sequence
from dataclasses import replace
from pathlib import Path
from typing import Any

import yaml

from src.constants import EXTERNAL_NAME_ANNOTATION
from src.cql_engine.desired.models import (
    GrantParameters,
    KeyspaceParameters,
    ManagedResource,
    Parameters,
    RoleParameters,
)
from src.cql_engine.errors import RecordStoreError
from src.cql_engine.state.ports import ResourceStatus
from src.cql_engine.state.states import ConnectionSecret
from src.enums import Privilege, ReplicationStrategy, ResourceKind
from src.logger import get_logger

LOGGER = get_logger("manifests")

Document = dict[str, Any]


class ManifestError(ValueError):
    """Raised when a manifest document cannot be turned into a managed resource."""


# ---------- parsing ----------


def _enum_value(enum_type: type, raw: object, what: str, name: str):
    try:
        return enum_type(raw)
    except ValueError as error:
        allowed = ", ".join(member.value for member in enum_type)
        raise ManifestError(f"{name}: unknown {what} {raw!r} (expected one of: {allowed})") from error


def _mapping(raw: object, what: str, name: str) -> Mapping[str, Any]:
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise ManifestError(f"{name}: {what} must be a mapping, got {raw!r}")
    return raw


def _secret_name(raw: object, name: str) -> str | None:
    """A secret name is used as a file name: one plain path component."""
    if raw is None:
        return None
    if (
        not isinstance(raw, str)
        or raw in ("", ".", "..")
        or "/" in raw
        or "\\" in raw
        or "\0" in raw
    ):
        raise ManifestError(
            f"{name}: writeConnectionSecretToRef.name {raw!r} is not a valid secret name"
        )
    return raw


def _optional_bool(raw: object, what: str, name: str) -> bool | None:
    if raw is None or isinstance(raw, bool):
        return raw
    raise ManifestError(f"{name}: {what} must be a boolean, got {raw!r}")


def _parse_keyspace(for_provider: Mapping[str, Any], name: str) -> KeyspaceParameters:
    strategy = for_provider.get("replicationClass")
    factor = for_provider.get("replicationFactor")
    if factor is not None and (isinstance(factor, bool) or not isinstance(factor, int) or factor < 1):
        raise ManifestError(f"{name}: replicationFactor must be a positive integer, got {factor!r}")
    return KeyspaceParameters(
        replication_class=(
            None
            if strategy is None
            else _enum_value(ReplicationStrategy, strategy, "replicationClass", name)
        ),
        replication_factor=factor,
        durable_writes=_optional_bool(for_provider.get("durableWrites"), "durableWrites", name),
    )


def _parse_role(for_provider: Mapping[str, Any], name: str) -> RoleParameters:
    privileges = _mapping(for_provider.get("privileges"), "privileges", name)
    return RoleParameters(
        superuser=_optional_bool(privileges.get("superUser"), "superUser", name),
        login=_optional_bool(privileges.get("login"), "login", name),
    )


def _parse_grant(for_provider: Mapping[str, Any], name: str) -> GrantParameters:
    raw_privileges = for_provider.get("privileges") or []
    if not isinstance(raw_privileges, list) or not raw_privileges:
        raise ManifestError(f"{name}: privileges must be a non-empty list")
    return GrantParameters(
        privileges=tuple(_enum_value(Privilege, p, "privilege", name) for p in raw_privileges),
        role=for_provider.get("role"),
        keyspace=for_provider.get("keyspace"),
        role_ref=_mapping(for_provider.get("roleRef"), "roleRef", name).get("name"),
        keyspace_ref=_mapping(for_provider.get("keyspaceRef"), "keyspaceRef", name).get("name"),
    )


_PARSERS: dict[ResourceKind, Callable[[Mapping[str, Any], str], Parameters]] = {
    ResourceKind.KEYSPACE: _parse_keyspace,
    ResourceKind.ROLE: _parse_role,
    ResourceKind.GRANT: _parse_grant,
}


def parse_resource(document: Mapping[str, Any]) -> ManagedResource:
    """Turn one manifest document into a `ManagedResource` (refs not yet resolved)."""
    kind = ResourceKind(document["kind"])
    metadata = _mapping(document.get("metadata"), "metadata", kind)
    name = metadata.get("name")
    if not name or not isinstance(name, str):
        raise ManifestError(f"{kind} document without metadata.name")

    spec = _mapping(document.get("spec"), "spec", name)
    annotations = _mapping(metadata.get("annotations"), "metadata.annotations", name)
    secret_ref = _mapping(
        spec.get("writeConnectionSecretToRef"), "writeConnectionSecretToRef", name
    )
    return ManagedResource(
        kind=kind,
        name=name,
        parameters=_PARSERS[kind](_mapping(spec.get("forProvider"), "forProvider", name), name),
        external_name=annotations.get(EXTERNAL_NAME_ANNOTATION),
        connection_secret_name=_secret_name(secret_ref.get("name"), name),
        deletion_requested=metadata.get("deletionTimestamp") is not None,
    )


def resolve_references(resources: Sequence[ManagedResource]) -> tuple[ManagedResource, ...]:
    """
    Fill grant `role` / `keyspace` from `roleRef` / `keyspaceRef`.

    A reference resolves to the referenced resource's external name. An explicit
    value wins over a reference. Unresolvable references are left unset; the
    grant controller reports them when the grant is reconciled.
    """
    by_kind_and_name = {(r.kind, r.name): r for r in resources}

    def external_name(kind: ResourceKind, ref: str | None) -> str | None:
        target = by_kind_and_name.get((kind, ref)) if ref else None
        return target.get_external_name() if target else None

    resolved: list[ManagedResource] = []
    for resource in resources:
        params = resource.parameters
        if isinstance(params, GrantParameters):
            params = replace(
                params,
                role=params.role or external_name(ResourceKind.ROLE, params.role_ref),
                keyspace=params.keyspace
                or external_name(ResourceKind.KEYSPACE, params.keyspace_ref),
            )
            resource = resource.with_parameters(params)
        resolved.append(resource)
    return tuple(resolved)


# ---------- rendering (write-back) ----------


def _render_keyspace(params: KeyspaceParameters) -> Document:
    return {
        "replicationClass": None if params.replication_class is None else str(params.replication_class),
        "replicationFactor": params.replication_factor,
        "durableWrites": params.durable_writes,
    }


def _render_role(params: RoleParameters) -> Document:
    return {"privileges": _without_none({"superUser": params.superuser, "login": params.login})}


def _render_grant(params: GrantParameters) -> Document:
    return {
        "privileges": [p.value for p in params.privileges],
        "role": params.role,
        "keyspace": params.keyspace,
        "roleRef": {"name": params.role_ref} if params.role_ref else None,
        "keyspaceRef": {"name": params.keyspace_ref} if params.keyspace_ref else None,
    }


def _without_none(values: Mapping[str, Any]) -> Document:
    return {key: value for key, value in values.items() if value is not None}


def _keep_declared_targets(rendered: Document, declared: Mapping[str, Any]) -> Document:
    """
    Grant `role` / `keyspace` are written back only as declared.

    Values resolved from `roleRef` / `keyspaceRef` stay out of the document so a
    repointed reference takes effect on the next load.
    """
    kept = {key: value for key, value in rendered.items() if key not in ("role", "keyspace")}
    for key in ("role", "keyspace"):
        if declared.get(key) is not None:
            kept[key] = declared[key]
    return kept


def render_for_provider(params: Parameters) -> Document:
    if isinstance(params, KeyspaceParameters):
        return _without_none(_render_keyspace(params))
    if isinstance(params, RoleParameters):
        return _without_none(_render_role(params))
    return _without_none(_render_grant(params))


# ---------- stores ----------


class ManifestStore:
    """A manifest file acting as the desired-state and status store."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()
        with self.path.open("r") as f:
            try:
                self._documents: list[Document] = [d for d in yaml.safe_load_all(f) if d]
            except yaml.YAMLError as error:
                raise ManifestError(f"{self.path}: not valid YAML: {error}") from error

    @property
    def documents(self) -> tuple[Document, ...]:
        return tuple(self._documents)

    def load_resources(self) -> tuple[ManagedResource, ...]:
        """Parse every managed-resource document and resolve grant references."""
        known = {kind.value for kind in ResourceKind}
        resources: list[ManagedResource] = []
        for document in self._documents:
            if not isinstance(document, dict):
                raise ManifestError(
                    f"{self.path}: every document must be a mapping, got {document!r}"
                )
            kind = document.get("kind")
            if kind not in known:
                LOGGER.warning("Skipping document of kind %r in %s", kind, self.path)
                continue
            resources.append(parse_resource(document))
        return resolve_references(resources)

    # ----- ResourceStore -----

    def update_spec(self, resource: ManagedResource) -> None:
        with self._lock:
            document = self._find(resource)
            metadata = document.get("metadata") or {}
            document["metadata"] = metadata
            if resource.external_name:
                annotations = metadata.get("annotations") or {}
                annotations[EXTERNAL_NAME_ANNOTATION] = resource.external_name
                metadata["annotations"] = annotations
            spec = document.get("spec") or {}
            document["spec"] = spec
            rendered = render_for_provider(resource.parameters)
            if isinstance(resource.parameters, GrantParameters):
                rendered = _keep_declared_targets(rendered, spec.get("forProvider") or {})
            spec["forProvider"] = rendered
            self._save()

    def update_status(self, resource: ManagedResource, status: ResourceStatus) -> None:
        with self._lock:
            document = self._find(resource)
            document["status"] = _without_none(
                {"ready": status.ready, "synced": status.synced, "message": status.message or None}
            )
            self._save()

    # ----- helpers -----

    def _find(self, resource: ManagedResource) -> Document:
        for document in self._documents:
            if not isinstance(document, dict) or document.get("kind") != resource.kind.value:
                continue
            metadata = document.get("metadata") or {}
            if isinstance(metadata, dict) and metadata.get("name") == resource.name:
                return document
        raise RecordStoreError(f"{resource.kind} {resource.name!r} not found in {self.path}")

    def _save(self) -> None:
        try:
            with self.path.open("w") as f:
                yaml.safe_dump_all(self._documents, f, sort_keys=False, explicit_start=True)
        except (OSError, yaml.YAMLError) as error:
            raise RecordStoreError(f"cannot write {self.path}: {error}") from error


class DirectorySecretStore:
    """Write each connection secret as a Secret document, readable by the owner only."""

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def publish(self, resource: ManagedResource, secret: ConnectionSecret) -> None:
        name = resource.connection_secret_name or resource.name
        if Path(name).name != name or name in (".", ".."):
            raise PermissionError(f"secret name {name!r} would leave {self.directory}")
        self.directory.mkdir(parents=True, exist_ok=True)
        document = {
            "apiVersion": "v1",
            "kind": "Secret",
            "metadata": {"name": name},
            "stringData": secret.as_data(),
        }
        target = self.directory / f"{name}.yaml"
        fd = os.open(target, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w") as f:
            yaml.safe_dump(document, f, sort_keys=False)
        LOGGER.info("Published connection secret %s for %s %s", name, resource.kind, resource.name)


def load_credentials(path: Path) -> dict[str, str]:
    """Read a credentials mapping (username/password/endpoint/port) or a Secret document."""
    with Path(path).open("r") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as error:
            raise ManifestError(f"{path}: not valid YAML: {error}") from error
    data = _mapping(data, "credentials", str(path))
    if data.get("kind") == "Secret":
        data = _mapping(data.get("stringData"), "stringData", str(path))
    return {key: str(value) for key, value in data.items() if value is not None}
