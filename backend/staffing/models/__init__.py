from .directory import Zone, Store, Employee, Profile
from .assignments import Delegation, Transfer, AssignmentEvent

__all__ = [
    'Zone', 'Store', 'Employee', 'Profile',
    'Delegation', 'Transfer', 'AssignmentEvent',
]
