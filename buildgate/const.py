GIT_TIMEOUT = 20
LFS_TIMEOUT = 60 * 20
BUILD_TIMEOUT = 60 * 10
INSTALL_TIMEOUT = 60 * 10

LOCK_WAIT = 60 * 20
LOCK_STALE = 60 * 60 * 2
LOCK_POLL_INTERVAL = 1.0

# grace period for a terminated process group to exit before giving up on it
KILL_GRACE = 5

TIMEOUT_MARKER = 'Error: child process timeout!!!'

SUPPORT_LIB_SUBDIR = 'lib/linux_x86'
FAILED_LOGS_SUBDIR = 'gtest-parallel-logs/failed'

INSTALL_DEPS_REQUIREMENTS = 'requirements.txt'
INSTALL_DEPS_CMD = ('python3', '-m', 'pip', 'install', '--user', '-r', 'requirements.txt')
SUPPORT_LIB_BUILD_CMD = ('./make.sh', 'linux')
PRODUCT_CLEAN_CMD = ('./make.py', 'clean')
PRODUCT_ANDROID_BUILD_CMD = ('./make.py', 'android')
PRODUCT_BUILD_AND_TEST_CMD = ('./make.py', '-p', '-c')

LOG_FILE_PREFIX = 'test_output'
MAX_COMMENT_LOG_LENGTH = 10000
MAX_STATUS_DESCRIPTION_LENGTH = 140
GH_API_BASE = 'https://api.github.com'
STATUS_CONTEXT = 'buildgate'
