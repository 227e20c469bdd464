from rest_framework.permissions import BasePermission


class IsClient(BasePermission):
    message = "Only client accounts can perform this action."

    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated and request.user.user_type == 'client')


class IsEditor(BasePermission):
    message = "Only editor accounts can perform this action."

    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated and request.user.user_type == 'editor')
