class VesselBotError(Exception):
    """Base error for the vessel assistant"""


class CollaboratorError(VesselBotError):
    """An external collaborator failed, timed out or answered garbage"""


class IntentDetectionError(CollaboratorError):
    """Intent detection call failed or returned an unparseable result"""


class VesselDataError(CollaboratorError):
    """Vessel dashboard or recommendations API failed"""


class RecommendationsTimeout(VesselDataError):
    """Recommendations API did not answer within the request budget"""


class ReportError(CollaboratorError):
    """Report service could not build a download link or send an email"""


class DeliveryError(CollaboratorError):
    """Outbound message could not be delivered"""
