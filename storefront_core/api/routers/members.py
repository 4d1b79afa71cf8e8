"""Member lookup routes.

The repository is obtained through the resolver, and every failure goes
through the handler wrapper to the application's error responder.
"""

from fastapi import APIRouter, Depends, Request

from storefront_core.api.deps import provide
from storefront_core.api.handlers import wrap
from storefront_core.core.exceptions import NotFoundError, ValidationError
from storefront_core.repositories.interfaces import MemberRepository
from storefront_core.schemas.common import MemberResponse

MEMBER_REPOSITORY_KEY = "memberRepository"

router = APIRouter(prefix="/members", tags=["members"])


def _respond(exc: Exception, request: Request | None):
    # Same sink as the app-level handlers; installed on app.state by create_app
    responder = request.app.state.error_responder
    return responder.respond(exc, request)


async def get_member(
    member_id: str,
    request: Request,
    repo: MemberRepository = Depends(provide(MEMBER_REPOSITORY_KEY)),
):
    if not member_id.strip():
        raise ValidationError("member_id must not be blank")
    row = await repo.get_by_id(member_id)
    if row is None:
        raise NotFoundError(f"Member not found: {member_id}")
    return MemberResponse(id=row.id, email=row.email, name=row.name)


router.add_api_route(
    "/{member_id}",
    wrap(get_member, _respond),
    methods=["GET"],
    response_model=MemberResponse,
    summary="Fetch a member by id",
)
