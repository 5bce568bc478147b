from sqlalchemy import Column, Date, Float, ForeignKey, Integer, String, Text, create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from config import DB_URL

# Database Setup
engine = create_engine(DB_URL, connect_args={"check_same_thread": False} if "sqlite" in DB_URL else {})
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

# --- Models ---

class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    date = Column(Date, index=True)
    description = Column(String)
    amount = Column(Float)  # Positive = income, negative = expense
    category = Column(String)

    # Set for transfers into (negative) or out of (positive) a goal
    goal_id = Column(String, ForeignKey("goals.id"), nullable=True)

class Asset(Base):
    __tablename__ = "assets"

    id = Column(String, primary_key=True, index=True)
    name = Column(String)
    kind = Column(String, default="other")  # savings, investment, property, vehicle, cash, other
    current_value = Column(Float, default=0.0)
    description = Column(Text, nullable=True)
    currency = Column(String, default="EUR")

class Goal(Base):
    __tablename__ = "goals"

    id = Column(String, primary_key=True, index=True)
    title = Column(String)
    target_amount = Column(Float, default=0.0)
    current_amount = Column(Float, default=0.0)
    category = Column(String, nullable=True)  # Set for spending limits
    target_type = Column(String, default="savings")  # 'goal' or 'savings'
    currency = Column(String, default="EUR")

class HealthScoreRecord(Base):
    """Scores written by the external scoring job, one per month."""
    __tablename__ = "health_scores"

    id = Column(Integer, primary_key=True, index=True)
    month = Column(Date, unique=True, index=True)  # First day of the month
    score = Column(Integer)
    explanation = Column(Text, default="")

# --- Init DB ---
def init_db():
    Base.metadata.create_all(bind=engine)

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
