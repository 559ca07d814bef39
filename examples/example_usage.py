"""Example: two marshals on one drill, without Flask or MySQL.

Controllers are a thin layer; everything below runs on the service layer and the
change feed, with the in-memory store standing in for the database.
"""

from fire_muster.client.marshal_client import MarshalClient
from fire_muster.container import build_memory_container
from fire_muster.core.enums import AttendanceStatus


def main():
    container = build_memory_container()
    alex = container.marshal_service.add_marshal("Alex Morgan")
    priya = container.marshal_service.add_marshal("Priya Shah")
    ben = container.employee_service.add_employee("Ben Osei", dept="Finance", marshal_id=alex.marshal_id)
    container.employee_service.add_employee("Daniel Kim", dept="Technical", marshal_id=priya.marshal_id)

    first = MarshalClient(container, name="alex")
    second = MarshalClient(container, name="priya")
    for client, marshal in ((first, alex), (second, priya)):
        client.connect()
        client.select_marshal(marshal.marshal_id)

    drill = first.start_drill()
    second.pump()
    second.join_session(second.state.active_sessions[0])

    second.set_status(ben.employee_id, AttendanceStatus.MISSING)
    second.save_note(ben.employee_id, "Last seen on floor 3")
    first.pump()
    print(first.state.status_of(ben.employee_id), first.state.attendance[ben.employee_id].note)

    first.stop_drill()
    second.pump()
    print(first.report().text)
    print("drill", drill.session_id, "active:", second.state.session.active)

    first.close()
    second.close()


if __name__ == "__main__":
    main()
