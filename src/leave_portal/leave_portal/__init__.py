"""School Leave Portal package.

Students request permission to leave school during a lesson period; the
homeroom teacher, the period's subject teacher and the head of student
affairs decide, and the front desk (Piket) finalizes approved permits.

Feature modules (academics, schedules, users, leave) follow the same split:
a thin Flask controller, a service holding the rules, and Protocol
repositories with MySQL implementations.
"""
