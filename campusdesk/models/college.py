"""
College structure: batches own branches, branches own subjects.
"""

from sqlalchemy import Column, String, Integer, ForeignKey, UniqueConstraint

from campusdesk.core.database import Base


class Batch(Base):
    """Intake cohort, e.g. 2021-2025"""
    __tablename__ = "batches"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), unique=True, nullable=False)
    start_year = Column(Integer, nullable=False)
    end_year = Column(Integer, nullable=False)

    def __repr__(self):
        return f"<Batch {self.name}>"


class Branch(Base):
    """Academic branch inside a batch (CSE, ECE, ...)"""
    __tablename__ = "branches"
    __table_args__ = (
        UniqueConstraint("batch_id", "name", name="uq_branch_batch_name"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    batch_id = Column(Integer, ForeignKey("batches.id"), nullable=False, index=True)

    def __repr__(self):
        return f"<Branch {self.name} (batch {self.batch_id})>"


class Subject(Base):
    """Subject taught in a branch"""
    __tablename__ = "subjects"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(20), unique=True, nullable=False)
    name = Column(String(255), nullable=False)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=False, index=True)
    total_marks = Column(Integer, default=100, nullable=False)

    def __repr__(self):
        return f"<Subject {self.code}>"
