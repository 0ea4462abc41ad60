# Infrastructure clients
from clients.vault_client import (
    VaultClient,
    VaultError,
    get_database_url,
    get_database_admin_url,
    get_valkey_url,
    get_storage_config,
)
from clients.postgres_client import PostgresClient
from clients.valkey_client import ValkeyClient
from clients.storage_client import StorageClient
from clients.line_client import LineClient
