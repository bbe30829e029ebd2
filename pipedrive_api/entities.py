from pipedrive_api.client import Base, entity_name
from pipedrive_api.operations import Create, Delete, Read, Update, Utils


class CallLog(Base, Read, Create, Update, Delete, Utils):
    pass


class Webhook(Base, Read, Create, Update, Delete, Utils):
    pass


class Person(Base, Read, Create, Update, Delete, Utils):
    pass


class Deal(Base, Read, Create, Update, Delete, Utils):
    pass


class Organization(Base, Read, Create, Update, Delete, Utils):
    pass


class Activity(Base, Read, Create, Update, Delete, Utils):
    pass


class Note(Base, Read, Create, Update, Delete, Utils):
    pass


ENTITIES = {
    entity_name(entity.__name__): entity
    for entity in (CallLog, Webhook, Person, Deal, Organization, Activity, Note)
}
