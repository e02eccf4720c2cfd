class InternalURIs:
    API = "/api"
    V1 = API + "/v1"
    VIMEO = V1 + "/vimeo"
    CREATE_UPLOAD = VIMEO + "/create-upload"
    CONFIRM_UPLOAD = VIMEO + "/confirm-upload"
    CLEANUP = VIMEO + "/cleanup"
    WHOAMI = VIMEO + "/whoami"


class ExternalURIs:
    ME = "/me"
    ME_VIDEOS = ME + "/videos"
    FOLDER_VIDEO = ME + "/folders/{folder_id}/videos/{video_id}"
    VIDEO = "/videos/{video_id}"


DEFAULT_VIDEO_NAME = "User submission"
