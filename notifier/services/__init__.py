"""Business logic services package."""

from notifier.services.git_runner import (
    GitRunner,
    ProcessFailure,
    ProcessSpawnFailure,
    ProcessTimeoutFailure,
    options_to_args,
    run_command,
)
from notifier.services.clone_store import (
    CloneStore,
    CloneFailure,
    get_clone_store,
)
from notifier.services.revision_comparator import (
    RevisionComparator,
    SyncFailure,
)
from notifier.services.change_fetcher import ChangeFetcher
from notifier.services.markup_renderer import (
    MarkupRenderer,
    get_markup_renderer,
)
from notifier.services.mail_sender import (
    MailSender,
    DeliveryFailure,
    get_mail_sender,
)
from notifier.services.repository_config import (
    RepositoryConfigService,
    RepositoryValidationError,
    get_repository_config_service,
)
from notifier.services.git_notifier import (
    GitNotifier,
    get_git_notifier,
)

__all__ = [
    'GitRunner',
    'ProcessFailure',
    'ProcessSpawnFailure',
    'ProcessTimeoutFailure',
    'options_to_args',
    'run_command',
    'CloneStore',
    'CloneFailure',
    'get_clone_store',
    'RevisionComparator',
    'SyncFailure',
    'ChangeFetcher',
    'MarkupRenderer',
    'get_markup_renderer',
    'MailSender',
    'DeliveryFailure',
    'get_mail_sender',
    'RepositoryConfigService',
    'RepositoryValidationError',
    'get_repository_config_service',
    'GitNotifier',
    'get_git_notifier',
]
