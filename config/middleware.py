"""
Custom middleware for the institute backend.
"""
from django.utils.deprecation import MiddlewareMixin


class NoCacheApiMiddleware(MiddlewareMixin):
    """
    Ledger figures change on every payment; API responses must never be served from a cache.
    Binary downloads (invoice PDFs) are left untouched.
    """
    API_PREFIX = '/api/'

    def process_response(self, request, response):
        if not request.path.startswith(self.API_PREFIX):
            return response
        content_type = response.get('Content-Type', '')
        if 'application/pdf' in content_type.lower():
            return response
        response['Cache-Control'] = 'no-cache, no-store, must-revalidate'
        response['Pragma'] = 'no-cache'
        response['Expires'] = '0'
        return response
