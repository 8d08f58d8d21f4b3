# type: ignore
from typing import List  # noqa
from typing import Tuple  # noqa

from riot import Venv


latest = ""


SUPPORTED_PYTHON_VERSIONS: List[Tuple[int, int]] = [
    (3, 8),
    (3, 9),
    (3, 10),
    (3, 11),
    (3, 12),
    (3, 13),
]


def select_pys(min_version: Tuple[int, int] = (3, 8), max_version: Tuple[int, int] = (3, 13)) -> List[str]:
    """Select the supported python versions between ``min_version`` and ``max_version``

    >>> select_pys(min_version=(3, 12))
    ['3.12', '3.13']
    """
    return [
        "%d.%d" % version for version in SUPPORTED_PYTHON_VERSIONS if min_version <= version <= max_version
    ]


venv = Venv(
    pkgs={
        "mock": latest,
        "pytest": latest,
        "pytest-cov": latest,
        "coverage": latest,
    },
    env={
        "FLIPT_LOGGING_RATE": "0",
    },
    venvs=[
        Venv(
            name="flipt",
            command="pytest {cmdargs} tests/",
            pys=select_pys(),
            pkgs={
                "envier": "~=0.6",
                "grpcio": latest,
                "protobuf": latest,
                "openfeature-sdk": ["~=0.7.0", latest],
            },
        ),
    ],
)
