from maid.lock_mode import LockMode

DEFAULT_LOCK_MODE: LockMode = LockMode.THREAD
