from sqlalchemy import Column, String, Date, Float, Integer, ForeignKey, UniqueConstraint

from campusdesk.core.database import Base


class Exam(Base):
    """Assessment for one subject"""
    __tablename__ = "exams"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)  # e.g. Mid-1, Semester End
    subject_id = Column(Integer, ForeignKey("subjects.id"), nullable=False, index=True)
    total_marks = Column(Integer, default=100, nullable=False)
    date = Column(Date, nullable=True)

    def __repr__(self):
        return f"<Exam {self.name} (subject {self.subject_id})>"


class ExamMark(Base):
    """Marks a student obtained in an exam"""
    __tablename__ = "exam_marks"
    __table_args__ = (
        UniqueConstraint("exam_id", "student_id", name="uq_exam_mark_exam_student"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    exam_id = Column(Integer, ForeignKey("exams.id"), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)
    marks_obtained = Column(Float, nullable=False)

    def __repr__(self):
        return f"<ExamMark exam={self.exam_id} student={self.student_id} {self.marks_obtained}>"
