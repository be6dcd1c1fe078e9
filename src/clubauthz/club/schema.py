"""Club data model: entities, field types and links.

Timestamps are epoch milliseconds (``number``); monetary amounts are strings.
"""

from __future__ import annotations

from typing import Any, Dict

from ..core.schema import SchemaRegistry

S = "string"
N = "number"
B = "boolean"
J = "json"


def opt(t: str) -> Dict[str, Any]:
    return {"type": t, "optional": True}


def idx(t: str, **kw: Any) -> Dict[str, Any]:
    return {"type": t, "indexed": True, **kw}


ENTITIES: Dict[str, Dict[str, Any]] = {
    "users": {
        "email": idx(S, unique=True),
        "firstName": opt(S),
        "lastName": opt(S),
        "profileImageUrl": opt(S),
        # admin | coach | player | guardian
        "role": idx(S),
        # pending | approved | rejected | inactive
        "status": idx(S),
        "createdAt": N,
        "updatedAt": N,
    },
    "playerProfiles": {
        "documentType": opt(S),
        "documentNumber": opt(S),
        "dateOfBirth": opt(S),
        "gender": opt(S),
        "phone": opt(S),
        "address": opt(S),
        # sub8 | sub12 | sub14 | sub16 | sub18 | mayores
        "category": idx(S),
        "position": opt(S),
        "jerseyNumber": opt(N),
        "uniformSize": opt(S),
        "guardianName": opt(S),
        "guardianRelationship": opt(S),
        "guardianDocument": opt(S),
        "guardianPhone": opt(S),
        "guardianEmail": opt(S),
        "bloodType": opt(S),
        "allergies": opt(S),
        "medicalConditions": opt(S),
        "emergencyContact": opt(S),
        "emergencyPhone": opt(S),
        "gamesPlayed": N,
        "goals": N,
        "assists": N,
        "createdAt": N,
        "updatedAt": N,
    },
    "categories": {
        "name": S,
        "ageMin": N,
        "ageMax": opt(N),
        "description": opt(S),
        "trainingSchedule": opt(S),
        "objectives": opt(S),
        "imageUrl": opt(S),
        "createdAt": N,
        "updatedAt": N,
    },
    "coaches": {
        "name": S,
        # job title, e.g. "Head Coach"; unrelated to user roles
        "role": S,
        "photoUrl": opt(S),
        "bio": opt(S),
        "experience": opt(S),
        "createdAt": N,
        "updatedAt": N,
    },
    "categoryAchievements": {
        "title": S,
        "description": opt(S),
        "year": N,
        "imageUrl": opt(S),
        "createdAt": N,
    },
    "newsPosts": {
        "title": S,
        "content": S,
        "excerpt": opt(S),
        "imageUrl": opt(S),
        # draft | published
        "status": idx(S),
        "publishedAt": N,
        "createdAt": N,
        "updatedAt": N,
    },
    "galleryAlbums": {
        "title": S,
        "description": opt(S),
        "coverImageUrl": opt(S),
        "createdAt": N,
        "updatedAt": N,
    },
    "galleryImages": {
        "imageUrl": S,
        "caption": opt(S),
        "createdAt": N,
    },
    "tournaments": {
        "name": S,
        "season": opt(S),
        "startDate": opt(S),
        "endDate": opt(S),
        "location": opt(S),
        "description": opt(S),
        "createdAt": N,
        "updatedAt": N,
    },
    "matches": {
        "date": N,
        "opponent": S,
        "location": opt(S),
        "homeScore": opt(N),
        "awayScore": opt(N),
        # win | loss | draw
        "result": opt(S),
        "notes": opt(S),
        "createdAt": N,
        "updatedAt": N,
    },
    "standings": {
        "teamName": S,
        "position": N,
        "played": N,
        "won": N,
        "drawn": N,
        "lost": N,
        "goalsFor": N,
        "goalsAgainst": N,
        "goalDifference": N,
        "points": N,
        "updatedAt": N,
    },
    "paymentConcepts": {
        "name": S,
        "description": opt(S),
        "amount": S,
        # once | monthly | quarterly | annual
        "frequency": S,
        "applicableCategories": J,
        "isActive": B,
        "createdAt": N,
        "updatedAt": N,
    },
    "accountsReceivable": {
        "amount": S,
        "dueDate": S,
        # pending | paid | overdue
        "status": idx(S),
        "description": opt(S),
        "createdAt": N,
        "updatedAt": N,
    },
    "payments": {
        "amount": S,
        "paymentDate": S,
        # cash | transfer | card | other
        "paymentMethod": S,
        "referenceNumber": opt(S),
        "notes": opt(S),
        "receiptNumber": {"type": S, "unique": True},
        "createdAt": N,
    },
    "paymentApplications": {
        "amount": S,
        "createdAt": N,
    },
    "documents": {
        # id | eps | medical | image_rights | other
        "type": S,
        "fileUrl": S,
        "fileName": S,
        # pending | approved | rejected
        "status": idx(S),
        "notes": opt(S),
        "uploadedAt": N,
        "reviewedAt": opt(N),
    },
    "contactSubmissions": {
        "name": S,
        "email": S,
        "phone": opt(S),
        "subject": S,
        "message": S,
        "isRead": B,
        "createdAt": N,
    },
}


def _link(on: str, has: str, label: str, r_on: str, r_has: str, r_label: str) -> Dict[str, Any]:
    return {
        "forward": {"on": on, "has": has, "label": label},
        "reverse": {"on": r_on, "has": r_has, "label": r_label},
    }


LINKS: Dict[str, Dict[str, Any]] = {
    "userPlayerProfile": _link("users", "one", "playerProfile", "playerProfiles", "one", "user"),
    "playerDocuments": _link(
        "playerProfiles", "many", "documents", "documents", "one", "playerProfile"
    ),
    "playerAccounts": _link(
        "playerProfiles", "many", "accountsReceivable", "accountsReceivable", "one", "playerProfile"
    ),
    "playerPayments": _link(
        "playerProfiles", "many", "payments", "payments", "one", "playerProfile"
    ),
    "categoryCoaches": _link("categories", "many", "coaches", "coaches", "one", "category"),
    "categoryAchievements": _link(
        "categories", "many", "achievements", "categoryAchievements", "one", "category"
    ),
    "categoryTournaments": _link(
        "categories", "many", "tournaments", "tournaments", "one", "category"
    ),
    "categoryMatches": _link("categories", "many", "matches", "matches", "one", "category"),
    "categoryAlbums": _link("categories", "many", "albums", "galleryAlbums", "one", "category"),
    "tournamentMatches": _link("tournaments", "many", "matches", "matches", "one", "tournament"),
    "tournamentStandings": _link(
        "tournaments", "many", "standings", "standings", "one", "tournament"
    ),
    "albumImages": _link("galleryAlbums", "many", "images", "galleryImages", "one", "album"),
    "conceptAccounts": _link(
        "paymentConcepts", "many", "accounts", "accountsReceivable", "one", "concept"
    ),
    "applicationPayment": _link(
        "paymentApplications", "one", "payment", "payments", "many", "applications"
    ),
    "applicationAccount": _link(
        "paymentApplications",
        "one",
        "account",
        "accountsReceivable",
        "many",
        "paymentApplications",
    ),
    "documentReviewer": _link("documents", "one", "reviewer", "users", "many", "reviewedDocuments"),
    "paymentCreator": _link("payments", "one", "creator", "users", "many", "createdPayments"),
}


def build_registry() -> SchemaRegistry:
    return SchemaRegistry.from_declaration(ENTITIES, LINKS)
