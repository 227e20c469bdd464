import logging
from django.utils import timezone

logger = logging.getLogger('audit')

class UserActivityLoggingMiddleWare:
    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        response = self.get_response(request)

        # DRF authenticates inside the view, so fall back to the user it resolved.
        user = getattr(request, 'user', None)
        actor = user if user is not None and user.is_authenticated else "Anonymous"
        method = request.method
        path = request.get_full_path()
        ip = self.get_client_ip(request)
        timestamp = timezone.now().isoformat()

        logger.info(f"[{timestamp}] {actor} - {method} {path} {response.status_code} - IP: {ip}")

        return response

    def get_client_ip(self, request):
        x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
        if x_forwarded_for:
            return x_forwarded_for.split(',')[0].strip()
        return request.META.get('REMOTE_ADDR')
