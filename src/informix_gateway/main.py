import logging
import sys

from informix_gateway.cli.commands import igw

logger = logging.getLogger(__name__)


def main() -> None:
    try:
        igw(obj={})
    except Exception as e:
        if logger.isEnabledFor(logging.DEBUG):
            logger.exception(e)
        else:
            logger.error(str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
