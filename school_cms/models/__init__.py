# Base.metadata 에 모든 테이블을 등록하기 위한 import
from school_cms.models.user import User, Role  # noqa: F401
from school_cms.models.ppdb import PPDBPeriod, PPDBRegistration, RegistrationStatus, Gender  # noqa: F401
from school_cms.models.contact import ContactMessage  # noqa: F401
from school_cms.models.admin_log import AdminActionLog, AdminAction  # noqa: F401
