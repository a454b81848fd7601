from sqlmodel import SQLModel, Field


class OrderCounter(SQLModel, table=True):
    """Last sequence handed out per counter name. Rows are never decremented."""
    __tablename__ = "order_counters"

    name: str = Field(primary_key=True)
    value: int = Field(default=0)
