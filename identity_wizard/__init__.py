from .version import IDENTITY_WIZARD_VERSION
from .logging import get_logger
from .simple_config import SimpleConfig
from .alert import Alert, AlertChannel, AlertSeverity
from .backup_phrase import BackupPhraseCodec, PhraseValidation, validate_backup_phrase
from .account import AccountState, AccountStore, WalletBackend, LocalWallet
from .provisioner import AccountProvisioner, ProvisioningResult
from .wizard import OnboardingWizard, WizardSession, Page, PathChoice


__version__ = IDENTITY_WIZARD_VERSION

_logger = get_logger(__name__)


# Ensure that asserts are enabled. Code should not rely on asserts being enabled,
# but some sanity checks are only done via asserts.
try:
    assert False
except AssertionError:
    pass
else:
    raise ImportError("Running with asserts disabled. Refusing to continue. Exiting...")
