from sqlalchemy import Column, String, Date

from timeledger.database import Base


class Holiday(Base):
    __tablename__ = "holidays"

    holiday_date = Column(Date, primary_key=True)
    region = Column(String(10), primary_key=True, default="")
    name = Column(String(200), nullable=False)
