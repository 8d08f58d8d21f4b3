PROVIDER_NAME = "flipt-provider"

DEFAULT_NAMESPACE = "default"
NAMESPACE_SEPARATOR = "/"

# Evaluation context keys
TARGETING_KEY = "targetingKey"
REQUEST_ID_KEY = "requestID"

DEFAULT_HTTP_ADDRESS = "http://localhost:8080"
DEFAULT_HTTPS_ADDRESS = "https://localhost:8080"
DEFAULT_GRPC_ADDRESS = "localhost:9000"

UNIX_SCHEME = "unix://"
