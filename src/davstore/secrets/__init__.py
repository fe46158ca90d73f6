from davstore.secrets.base import AuthCallback, CredentialProvider, Credentials
from davstore.secrets.callback import CallbackCredentialProvider, ChainedCredentialProvider, StaticCredentialProvider
from davstore.secrets.env import EnvCredentialProvider
from davstore.secrets.prompt import prompt_auth_callback

__all__ = [
    "AuthCallback",
    "CredentialProvider",
    "Credentials",
    "CallbackCredentialProvider",
    "ChainedCredentialProvider",
    "StaticCredentialProvider",
    "EnvCredentialProvider",
    "prompt_auth_callback",
]
