from app.models.course import (  # noqa: F401
    CompulsoryFacultyGroup,
    CompulsoryHallGroup,
    Course,
    CourseCompulsoryFaculty,
    CourseCompulsoryHall,
    CourseStudentEnrollment,
    CourseStudentGroupEnrollment,
)
from app.models.faculty import Faculty  # noqa: F401
from app.models.groups import (  # noqa: F401
    FacultyGroup,
    FacultyGroupMembership,
    HallGroup,
    HallGroupMembership,
    StudentGroup,
    StudentGroupMembership,
)
from app.models.hall import Hall  # noqa: F401
from app.models.kinds import CourseRelation, CourseTarget, ResourceKind  # noqa: F401
from app.models.session import SchedulingSession  # noqa: F401
from app.models.student import Student  # noqa: F401
