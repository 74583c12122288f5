from typing import List

from storefront.repositories.document_store import DocumentStore

ROLES = "roles"
USER_ROLES = "userRoles"


class UserRepository:
    def __init__(self, store: DocumentStore):
        self.store = store

    def role_slugs(self, user_id: str) -> List[str]:
        """Slugs of every role granted to the user; grants pointing at missing roles are skipped."""
        grants = self.store.query(USER_ROLES, filters=[("user_id", "==", user_id)])
        slugs = []
        for grant in grants:
            role = self.store.get(ROLES, grant.data.get("role_id", ""))
            if role is not None and role.data.get("slug"):
                slugs.append(role.data["slug"])
        return slugs
