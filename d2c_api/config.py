import os
from dataclasses import dataclass, fields
from typing import List, Mapping, Optional

# environment bindings injected by the infrastructure at deploy time
LOGISTICS_TABLE = "LOGISTICS_TABLE"
CLICKSTREAM_TABLE = "CLICKSTREAM_TABLE"
INVENTORY_DB_SECRET_ARN = "INVENTORY_DB_SECRET_ARN"
INVENTORY_DB_HOST = "INVENTORY_DB_HOST"
INVENTORY_DB_PORT = "INVENTORY_DB_PORT"
INVENTORY_DB_NAME = "INVENTORY_DB_NAME"
OPENSEARCH_ENDPOINT = "OPENSEARCH_ENDPOINT"

INVENTORY_DATABASE = "inventory"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


@dataclass(frozen=True)
class BackendBindings:
    logistics_table: Optional[str] = None
    clickstream_table: Optional[str] = None
    inventory_db_secret_arn: Optional[str] = None
    inventory_db_host: Optional[str] = None
    inventory_db_port: Optional[int] = None
    inventory_db_name: Optional[str] = None
    opensearch_endpoint: Optional[str] = None

    def missing(self) -> List[str]:
        """Environment variable names that were not bound."""
        return [f.name.upper() for f in fields(self) if getattr(self, f.name) in (None, "")]


def load_bindings(environ: Optional[Mapping[str, str]] = None) -> BackendBindings:
    """
    Read the backend bindings from the process environment.
    - Empty values are treated as unbound
    - INVENTORY_DB_PORT must be an integer when present
    """
    env = os.environ if environ is None else environ

    port = (env.get(INVENTORY_DB_PORT) or "").strip()
    if port and not port.isdigit():
        raise ValueError(f"{INVENTORY_DB_PORT} must be an integer, got {port!r}")

    return BackendBindings(
        logistics_table=env.get(LOGISTICS_TABLE) or None,
        clickstream_table=env.get(CLICKSTREAM_TABLE) or None,
        inventory_db_secret_arn=env.get(INVENTORY_DB_SECRET_ARN) or None,
        inventory_db_host=env.get(INVENTORY_DB_HOST) or None,
        inventory_db_port=int(port) if port else None,
        inventory_db_name=env.get(INVENTORY_DB_NAME) or None,
        opensearch_endpoint=env.get(OPENSEARCH_ENDPOINT) or None,
    )
