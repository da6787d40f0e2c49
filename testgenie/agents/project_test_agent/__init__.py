from .agent import ProjectTestAgent, WorkspaceSession, SessionState
from .constants import ProjectType
