# Services package init
"""
LocalMarket Backend: Services Layer
====================================

What:  Business rules between the HTTP routes and the repositories.
How:   Each service is built per request from a UnitOfWork and the external
       adapters it needs (see localmarket.dependencies). Services raise the
       application exceptions; routes only translate HTTP in and out.

Service Inventory:
    - UserService, ParcelService, RiderService, TrackingService
    - PaymentService (+ PaymentGateway / StripePaymentGateway)
    - NotificationService (+ NotificationHub for WebSocket push)
    - ProductService, OrderService, AdvertisementService, WatchlistService
    - ContactService (+ Mailer / HttpMailRelay)
"""
