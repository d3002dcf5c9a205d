"""Git transport: SSH credentials and repository operations.

Usage:
    from relbot.git import RepositoryClient, SshKeyCredentials

    client = RepositoryClient(credentials=creds, identity=identity, console=console)
    handle = await client.clone_repository("acme", "widget", workspace.path)
"""

from relbot.git.credentials import CredentialsProvider, SshKeyCredentials
from relbot.git.repository import BotIdentity, RepositoryClient, classify_transport_error

__all__ = [
    # Credentials
    "CredentialsProvider",
    "SshKeyCredentials",
    # Repository
    "BotIdentity",
    "RepositoryClient",
    "classify_transport_error",
]
