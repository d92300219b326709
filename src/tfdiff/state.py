"""State sources (local file and Azure Blob Storage) and the state report."""

from __future__ import annotations

import json
import os
from typing import Any

from azure.core.credentials import TokenCredential
from azure.core.exceptions import AzureError, ResourceNotFoundError
from azure.identity import DefaultAzureCredential, ClientSecretCredential
from azure.storage.blob import BlobServiceClient

from tfdiff.exceptions import StateFormatError, StateReadError
from tfdiff.formatter import format_output_value
from tfdiff.value import from_python

DEFAULT_STATE_FILE = "terraform.tfstate"


def _parse_state(data: str | bytes, location: str) -> dict[str, Any]:
    try:
        result = json.loads(data)
    except ValueError as e:
        raise StateFormatError(f"State is not valid JSON: {e}", path=location) from e
    except RecursionError as e:
        raise StateFormatError("State document is nested too deeply to parse", path=location) from e
    if not isinstance(result, dict):
        raise StateFormatError("State document must be an object", path=location)
    return result


class LocalStateSource:
    """State read from a local terraform.tfstate file."""

    def __init__(self, state_file: str) -> None:
        self.state_file = state_file

    def read(self) -> dict[str, Any] | None:
        if not os.path.exists(self.state_file):
            return None
        try:
            with open(self.state_file, "r") as f:
                data = f.read()
        except (OSError, UnicodeDecodeError) as e:
            reason = e.strerror if isinstance(e, OSError) and e.strerror else e
            raise StateReadError(f"Cannot read state file: {reason}", path=self.state_file) from e
        return _parse_state(data, self.state_file)


class AzureBlobStateSource:
    """State read from the blob an azurerm backend writes to.

    Credentials follow the backend's own order: a storage access key when one
    is given, then a service principal, then DefaultAzureCredential.
    """

    def __init__(self, storage_account_name: str, container_name: str, key: str,
                 access_key: str | None = None, client_id: str | None = None,
                 client_secret: str | None = None, tenant_id: str | None = None) -> None:
        credential: TokenCredential | str
        if access_key:
            credential = access_key
        elif client_id and client_secret and tenant_id:
            credential = ClientSecretCredential(tenant_id, client_id, client_secret)
        else:
            credential = DefaultAzureCredential()
        account_url = f"https://{storage_account_name}.blob.core.windows.net"
        self._blob_service = BlobServiceClient(account_url, credential=credential)
        self.location = f"{account_url}/{container_name}/{key}"
        self._blob_client = self._blob_service.get_container_client(container_name).get_blob_client(key)

    def read(self) -> dict[str, Any] | None:
        try:
            data = self._blob_client.download_blob().readall()
        except ResourceNotFoundError:
            return None
        except AzureError as e:
            raise StateReadError(f"Cannot read state blob: {e.message or e}", path=self.location) from e
        return _parse_state(data, self.location)


def _setting(args: Any, attr: str, *env_names: str) -> str | None:
    """CLI arg first, then the first environment variable that is set."""
    value = getattr(args, attr, None)
    if value:
        return value
    for name in env_names:
        if os.environ.get(name):
            return os.environ[name]
    return None


def get_source(args: Any) -> LocalStateSource | AzureBlobStateSource:
    """Create the appropriate state source from CLI args or env vars.

    Azure settings use the azurerm backend's names; credentials also fall
    back to the ARM_* variables Terraform itself reads.
    """
    backend_type = getattr(args, "backend", None) or os.environ.get("TFDIFF_STATE_BACKEND", "local")

    if backend_type == "azure":
        storage_account_name = _setting(args, "storage_account_name", "TFDIFF_STATE_STORAGE_ACCOUNT_NAME")
        container_name = _setting(args, "container_name", "TFDIFF_STATE_CONTAINER_NAME")
        key = _setting(args, "key", "TFDIFF_STATE_KEY")
        missing = []
        if not storage_account_name:
            missing.append("--storage-account-name or TFDIFF_STATE_STORAGE_ACCOUNT_NAME")
        if not container_name:
            missing.append("--container-name or TFDIFF_STATE_CONTAINER_NAME")
        if not key:
            missing.append("--key or TFDIFF_STATE_KEY")
        if missing:
            raise ValueError(
                "Azure state backend requires: " + ", ".join(missing)
            )
        assert storage_account_name is not None
        assert container_name is not None
        assert key is not None
        return AzureBlobStateSource(
            storage_account_name=storage_account_name,
            container_name=container_name,
            key=key,
            access_key=_setting(args, "access_key", "ARM_ACCESS_KEY"),
            client_id=_setting(args, "client_id", "ARM_CLIENT_ID"),
            client_secret=_setting(args, "client_secret", "ARM_CLIENT_SECRET"),
            tenant_id=_setting(args, "tenant_id", "ARM_TENANT_ID"),
        )
    else:
        state_file = _setting(args, "state_file", "TFDIFF_STATE_FILE") or DEFAULT_STATE_FILE
        return LocalStateSource(state_file)


def _type_name(type_expr: Any) -> str:
    if isinstance(type_expr, str):
        return type_expr
    if type_expr is None:
        return "unknown"
    return json.dumps(type_expr, separators=(",", ":"))


def build_state_report(state: dict[str, Any], title: str, include_full: bool = False) -> str:
    """Build a Markdown report: metadata, managed resources, outputs."""
    parts = [f"# Current State for {title}\n\n", "## State Metadata\n\n"]
    if state.get("serial") is not None:
        parts.append(f"**Serial:** {state['serial']}\n")
    if state.get("lineage"):
        parts.append(f"**Lineage:** {state['lineage']}\n")
    if state.get("terraform_version"):
        parts.append(f"**Terraform Version:** {state['terraform_version']}\n")
    if state.get("version") is not None:
        parts.append(f"**State Format Version:** {state['version']}\n")

    resources = state.get("resources")
    resources = [r for r in resources if isinstance(r, dict)] if isinstance(resources, list) else []
    managed = [r for r in resources if r.get("mode", "managed") == "managed"]
    if managed:
        parts.append("\n## Managed Resources\n\n")
        parts.append("| Type | Name | Module | Provider | Count |\n")
        parts.append("|------|------|--------|----------|-------|\n")
        for r in managed:
            instances = r.get("instances")
            count = len(instances) if isinstance(instances, list) else 0
            module = r.get("module") or "(root)"
            parts.append(f"| {r.get('type', '')} | {r.get('name', '')} | {module} | {r.get('provider', '')} | {count} |\n")

    outputs = state.get("outputs")
    outputs = outputs if isinstance(outputs, dict) else {}
    if outputs:
        parts.append("\n## State Outputs\n\n")
        for name in sorted(outputs):
            output = outputs[name] if isinstance(outputs[name], dict) else {"value": outputs[name]}
            type_name = _type_name(output.get("type"))
            if output.get("sensitive"):
                parts.append(f"- **{name}** (sensitive, type: {type_name}): `<sensitive>`\n")
            else:
                value_str = format_output_value(from_python(output.get("value")))
                parts.append(f"- **{name}** (type: {type_name}): {value_str}\n")
    else:
        parts.append("\n## State Outputs\n\nNo outputs defined.\n")

    if include_full:
        parts.append("\n## Full JSON State\n\n")
        try:
            content = json.dumps(state, indent=2, sort_keys=True)
        except RecursionError:
            parts.append("> **Note:** The state is nested too deeply to print in full.\n")
        else:
            parts.append("```json\n")
            parts.append(content)
            parts.append("\n```\n")

    return "".join(parts)
