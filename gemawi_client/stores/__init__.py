from gemawi_client.stores.auth import AuthStore
from gemawi_client.stores.base import Store
from gemawi_client.stores.data import DataStore
from gemawi_client.stores.notifications import NotificationStore
from gemawi_client.stores.settings import SettingsStore

__all__ = [
    "AuthStore",
    "DataStore",
    "NotificationStore",
    "SettingsStore",
    "Store",
]
