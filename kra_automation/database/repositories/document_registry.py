from kra_automation.database.connection import get_connection


class DocumentRegistry:
    """Database operations for the acc_portal_kyc_uploads table."""

    def register(self, company_id: int, document_id: str, filepath: str) -> None:
        """Link an uploaded document to a company.

        Re-registering the same document type for a company replaces the path.
        """
        with get_connection() as conn:
            conn.execute(
                """
                INSERT INTO acc_portal_kyc_uploads (userid, kyc_document_id, filepath)
                VALUES (%s, %s, %s)
                ON CONFLICT (userid, kyc_document_id) DO UPDATE
                SET filepath = EXCLUDED.filepath
                """,
                (str(company_id), document_id, filepath),
            )
            conn.commit()
