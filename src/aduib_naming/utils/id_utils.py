import uuid


class IdUtils:
    @staticmethod
    def generate_instance_id() -> str:
        """Generate a random unique instance ID."""
        return str(uuid.uuid4())
