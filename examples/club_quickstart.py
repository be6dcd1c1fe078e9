from clubauthz import Authorizer, Identity, Record
from clubauthz.store import InMemoryRecordStore


def main() -> None:
    store = InMemoryRecordStore.from_fixture(
        {
            "users": [
                {"id": "u-admin", "role": "admin", "status": "approved"},
                {"id": "u-ana", "role": "player", "status": "approved", "links": {"playerProfile": "pp-ana"}},
                {"id": "u-leo", "role": "player", "status": "approved"},
            ],
            "playerProfiles": [{"id": "pp-ana", "category": "sub12", "links": {"user": "u-ana"}}],
            "documents": [{"id": "med-1", "type": "medical", "status": "pending", "links": {"playerProfile": "pp-ana"}}],
        }
    )
    az = Authorizer(store=store)
    doc = store.get("documents", "med-1")

    for who in ("u-ana", "u-leo", "u-admin", None):
        ident = Identity(who) if who else None
        d = az.authorize("documents", "view", ident, doc)
        print(who or "anonymous", d.allowed, d.reason, d.matched_clause)
    # u-ana True matched data.playerProfile.user.id == auth.id
    # u-leo False no_match None
    # u-admin True matched auth.role == 'admin'
    # anonymous False unauthenticated None

    print(az.authorize("categories", "view", None, Record("categories", "sub12")).allowed)  # True


if __name__ == "__main__":
    main()
