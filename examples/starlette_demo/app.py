"""Minimal club API guarded by clubauthz.

Run:
  CLUBAUTHZ_STORE_URL=http://localhost:5000/api uvicorn examples.starlette_demo.app:app

The auth layer in front of this app sets ``x-user-id``; requests without it are
anonymous.
"""

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from clubauthz import Record, build_authorizer
from clubauthz.adapters import HeaderIdentityProvider
from clubauthz.adapters.starlette import require_access

authorizer = build_authorizer()
identities = HeaderIdentityProvider()


async def document_target(request: Request):
    doc_id = request.path_params["doc_id"]
    existing = await authorizer.resolver.fetch("documents", doc_id)
    target = existing or Record("documents", doc_id)
    return "documents", "view", identities.current_identity(request), target


def contact_target(request: Request):
    return "contactSubmissions", "create", identities.current_identity(request), Record("contactSubmissions", "new")


@require_access(authorizer, document_target)
async def get_document(request: Request):
    return JSONResponse({"id": request.path_params["doc_id"]})


@require_access(authorizer, contact_target)
async def submit_contact(request: Request):
    return JSONResponse({"received": True}, status_code=201)


app = Starlette(
    routes=[
        Route("/documents/{doc_id}", get_document),
        Route("/contact", submit_contact, methods=["POST"]),
    ]
)
