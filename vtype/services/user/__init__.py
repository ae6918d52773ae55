from vtype.services.user.directory import UserDirectory, parse_user_id

__all__ = ["UserDirectory", "parse_user_id"]
