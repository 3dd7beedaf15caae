from __future__ import annotations

from fastapi import APIRouter

from private_chat.api.deps import AuthDep, ChatConfigDep, CurrentPrincipal
from private_chat.api.v1.schemas.auth import PrincipalResponse, SignInResponse
from private_chat.application.policies.gating import resolve_role

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


@router.post("/anonymous", response_model=SignInResponse)
async def sign_in_anonymously(auth: AuthDep, config: ChatConfigDep) -> SignInResponse:
    sign_in = await auth.sign_in_anonymously()
    return SignInResponse(
        uid=sign_in.uid,
        token=sign_in.token,
        role=resolve_role(sign_in.uid, config.client_uid),
    )


@router.get("/me", response_model=PrincipalResponse)
async def me(principal: CurrentPrincipal) -> PrincipalResponse:
    return PrincipalResponse.model_validate(principal, from_attributes=True)
