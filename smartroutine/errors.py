class SmartRoutineError(Exception):
    '''Base class for errors surfaced to the user as a notification.'''

    title: str = 'Something went wrong'


class ValidationError(SmartRoutineError):
    '''Missing or invalid user input. Raised before any state change.'''

    title = 'Invalid input'


class StorageError(SmartRoutineError):
    '''Append/update/delete/query failure from the database.'''

    title = 'Storage error'


class UploadError(SmartRoutineError):
    '''Evidence upload failed; the tracking session is kept for a retry.'''

    title = 'Upload failed'


class GenerationError(SmartRoutineError):
    '''The insight model failed or returned output of the wrong shape.'''

    title = 'Insights unavailable'


class PermissionDenied(SmartRoutineError):
    title = 'Not allowed'


class NotFoundError(SmartRoutineError):
    title = 'Not found'


class NotRegisteredError(SmartRoutineError):
    title = 'Not registered'

    def __init__(self, message: str = 'Use /register to create your profile first.'):
        super().__init__(message)
