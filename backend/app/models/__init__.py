from app.models.academic_structure import Batch, Branch, Division  # noqa: F401
from app.models.classroom import Classroom  # noqa: F401
from app.models.course import Course  # noqa: F401
from app.models.schedule import ClassSchedule, ClassType, DayOfWeek  # noqa: F401
from app.models.user import User, UserRole  # noqa: F401
