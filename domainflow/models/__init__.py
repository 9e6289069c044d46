from .template import TaskTemplate, TemplateSubtask, PRIORITIES
from .domain import Domain
from .task import DomainTask, Subtask
from .comment import TaskComment, TaskTarget, SubtaskTarget, CommentTarget
