# Importing the tables registers them with ``Base.metadata`` so create_all and
# the string-based relationships can find each other.
from .activity import ActivityLogRow
from .division import DivisionRow
from .inventory import InventoryItemRow
from .profile import ProfileRow
from .request import RequestRow

__all__ = ["ActivityLogRow", "DivisionRow", "InventoryItemRow", "ProfileRow", "RequestRow"]
