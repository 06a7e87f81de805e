# Importe tous les modèles pour enregistrer leurs tables dans Base.metadata
# avant l'appel à Base.metadata.create_all() au démarrage de l'API.

from attendance_ledger.models.attendance_record import AttendanceRecordRow  # noqa: F401
