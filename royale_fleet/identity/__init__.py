"""Account identity: wallets and remote registration."""

from royale_fleet.identity.registration import AccountRegistrar, RegistrationOutcome
from royale_fleet.identity.wallet import WalletCredentials, WalletProvisioner, generate_wallet

__all__ = [
    "AccountRegistrar",
    "RegistrationOutcome",
    "WalletCredentials",
    "WalletProvisioner",
    "generate_wallet",
]
