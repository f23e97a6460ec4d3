from .schema import Slot
from .store import Store, MemoryBackend, open_store
from .json_store import JSONStore
from .sqlite_store import SQLiteStore
from .categories import CategoryRepository
from .preferences import PreferencesRepository
