import time

from sqlalchemy import Column, Integer, String, Text

from billflow.db.session import Base

def _now() -> int:
    return int(time.time())

class UserState(Base):
    __tablename__ = "user_state"

    user_id = Column(String, primary_key=True)
    key = Column(String, primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(Integer, nullable=False, default=_now, onupdate=_now)

class MonthlyData(Base):
    __tablename__ = "monthly_data"

    user_id = Column(String, primary_key=True)
    month_key = Column(String, primary_key=True)  # YYYY-MM
    data = Column(Text, nullable=False)
    updated_at = Column(Integer, nullable=False, default=_now, onupdate=_now)

class EmailConfigRow(Base):
    __tablename__ = "email_config"

    user_id = Column(String, primary_key=True)
    config = Column(Text, nullable=False)
    updated_at = Column(Integer, nullable=False, default=_now, onupdate=_now)
