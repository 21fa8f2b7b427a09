"""
Authentication dependencies and the engine container
"""

from datetime import datetime, timezone, timedelta
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
import jwt

from ..config import MicrocreditConfig, get_config
from ..days import resolve_timezone
from ..origination import LoanOriginator
from ..reconciliation import CashReconciliation
from ..reports import ReportAssembler
from ..repository import StorageLedgerRepository
from ..storage import InMemoryStorage, SQLiteStorage, StorageInterface


# JWT Security
security = HTTPBearer(auto_error=False)


class MicrocreditSystem:
    """Engine components wired over one storage backend"""
    
    def __init__(self, storage: Optional[StorageInterface] = None,
                 config: Optional[MicrocreditConfig] = None):
        self.config = config or get_config()
        
        # Initialize storage
        if storage is None:
            if self.config.use_sqlite:
                storage = SQLiteStorage(self.config.database_path)
            else:
                storage = InMemoryStorage()
        self.storage = storage
        self.tz = resolve_timezone(self.config.business_timezone)
        
        # Initialize core components
        self.repository = StorageLedgerRepository(self.storage)
        self.reconciliation = CashReconciliation(self.repository, self.tz)
        self.originator = LoanOriginator(self.repository, precision=self.config.money_precision)
        self.reports = ReportAssembler(
            self.repository, self.tz,
            renewal_window_days=self.config.renewal_window_days,
            precision=self.config.money_precision
        )


_system: Optional[MicrocreditSystem] = None


# Dependency to get the engine
def get_system() -> MicrocreditSystem:
    global _system
    if _system is None:
        _system = MicrocreditSystem()
    return _system


def create_access_token(user_id: str, config: Optional[MicrocreditConfig] = None) -> str:
    """Issue a signed token for a collector"""
    config = config or get_config()
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "iat": now,
        "exp": now + timedelta(hours=config.jwt_expiry_hours)
    }
    return jwt.encode(payload, config.jwt_secret, algorithm=config.jwt_algorithm)


def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(security),
                     system: MicrocreditSystem = Depends(get_system)) -> str:
    """Dependency that validates the bearer JWT and returns the collector id"""
    config = system.config
    if not config.auth_enabled:
        return "anonymous"
    
    if not credentials:
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        payload = jwt.decode(credentials.credentials, config.jwt_secret, algorithms=[config.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")
    
    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid token")
    return user_id
