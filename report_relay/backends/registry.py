"""Channel name to backend lookup."""
from report_relay.backends.base import PublishBackend
from report_relay.backends.mastodon import MastodonBackend
from report_relay.backends.twitter import TwitterBackend
from report_relay.errors import ConfigError

BACKENDS = {
    TwitterBackend.name: TwitterBackend,
    MastodonBackend.name: MastodonBackend,
}


def create_backend(channel: str) -> PublishBackend:
    try:
        return BACKENDS[channel]()
    except KeyError as e:
        raise ConfigError(f"No publish backend for channel '{channel}'") from e
