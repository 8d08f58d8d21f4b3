import contextlib
import os

from flipt_openfeature.settings.provider import config as provider_config


@contextlib.contextmanager
def override_env(env):
    """
    Temporarily override ``os.environ`` with provided values::

        >>> with override_env(dict(FLIPT_ADDRESS="http://flipt:8080")):
            # Your test
    """
    # Copy the full original environment
    original = dict(os.environ)

    # Remove any existing FLIPT_ variables so tests start from a clean slate
    for k in list(os.environ.keys()):
        if k.startswith("FLIPT_"):
            del os.environ[k]

    os.environ.update(env)
    try:
        yield
    finally:
        # Full clear the environment out and reset back to the original
        os.environ.clear()
        os.environ.update(original)


@contextlib.contextmanager
def override_provider_config(values):
    """
    Temporarily override the global provider configuration::

        >>> with override_provider_config(dict(namespace="production")):
            # Your test
    """
    unknown = set(values) - set(provider_config._provider_config_keys)
    if unknown:
        raise KeyError("unknown provider config keys: %s" % ", ".join(sorted(unknown)))

    originals = {key: getattr(provider_config, key) for key in values}
    for key, value in values.items():
        setattr(provider_config, key, value)
    try:
        yield
    finally:
        for key, value in originals.items():
            setattr(provider_config, key, value)
