from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.errors import AuthenticationError
from app.models.expert import Expert
from app.services.admin_service import AdminService
from app.services.auth_service import AuthService
from app.services.interview_service import InterviewService
from app.services.knowledge_service import KnowledgeService
from app.services.persona_service import PersonaService
from app.services.qa_service import QAService
from app.services.snapshot_service import SnapshotService
from app.services.topic_service import TopicService

bearer_scheme = HTTPBearer(auto_error=False)


def get_interview_service(request: Request) -> InterviewService:
    return request.app.state.interview_service


def get_snapshot_service(request: Request) -> SnapshotService:
    return request.app.state.snapshot_service


def get_knowledge_service(request: Request) -> KnowledgeService:
    return request.app.state.knowledge_service


def get_persona_service(request: Request) -> PersonaService:
    return request.app.state.persona_service


def get_topic_service(request: Request) -> TopicService:
    return request.app.state.topic_service


def get_qa_service(request: Request) -> QAService:
    return request.app.state.qa_service


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_admin_service(request: Request) -> AdminService:
    return request.app.state.admin_service


def get_bearer_token(credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme)) -> str:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Authentication required.")
    return credentials.credentials


def get_current_expert(
    token: str = Depends(get_bearer_token),
    auth: AuthService = Depends(get_auth_service),
) -> Expert:
    return auth.authenticate(token)


def get_optional_expert(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    auth: AuthService = Depends(get_auth_service),
) -> Expert | None:
    if credentials is None:
        return None
    try:
        return auth.authenticate(credentials.credentials)
    except AuthenticationError:
        return None
