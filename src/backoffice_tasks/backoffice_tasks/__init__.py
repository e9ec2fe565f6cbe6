"""Back-office task board.

Feature modules (tasks, projects, labels, stats) each keep a repository
protocol, a MySQL implementation, a service with the business rules, and a
thin Flask controller.
"""
