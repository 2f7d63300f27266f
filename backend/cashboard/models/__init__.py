from .stores import Store, CashRegister, CashRegisterUser
from .auth import User, UserPermissionGrant, SessionToken
from .operations import DailyIncome, DailyExpense, DailyClosure
from .security import SecurityEvent
from .settings import SystemSetting

__all__ = [
    'Store', 'CashRegister', 'CashRegisterUser',
    'User', 'UserPermissionGrant', 'SessionToken',
    'DailyIncome', 'DailyExpense', 'DailyClosure',
    'SecurityEvent',
    'SystemSetting',
]
