import logging

from buildgate.config import config

logging.basicConfig(
    format='%(asctime)s [%(name)s] %(levelname)s: %(message)s',
    level=logging.INFO,
)
if config.debug:
    logging.getLogger('buildgate.utils').setLevel(logging.DEBUG)
    logging.getLogger('buildgate.runner').setLevel(logging.DEBUG)
