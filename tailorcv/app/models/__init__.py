from tailorcv.app.models.resume import Resume, WorkExperience, Education
from tailorcv.app.models.resume_group import ResumeGroup
from tailorcv.app.models.user_usage import UserUsage
from tailorcv.app.models.user_subscription import UserSubscription
