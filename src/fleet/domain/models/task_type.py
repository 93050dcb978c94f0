from enum import Enum


class TaskType(str, Enum):
    LATIHAN = "latihan"
    OPERASI = "operasi"
    TADBIR = "tadbir"
    LOGISTIK = "Logistik"
    PENTADBIRAN = "Pentadbiran"
    LAIN_LAIN = "Lain-lain"
