"""
Site-to-site VPN to the on-premises network.

Resources:
  - VPN gateway + VPC attachment
  - Customer gateway (peer public IP and BGP ASN)
  - Static-routes-only VPN connection and its on-premises route
  - One route per private subnet sending the on-premises CIDR to the VPN
    gateway; each route depends on the attachment

Peer values are CloudFormation parameters; the platform config supplies
their defaults.
"""

from typing import List

from aws_cdk import CfnParameter
from aws_cdk import aws_ec2 as ec2
from constructs import Construct

from infra.config import VpnSettings
from infra.components.networking import Networking
from infra.graph import PrecedenceCheck

VPN_TYPE = "ipsec.1"


class SiteToSiteVpn(Construct):

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        settings: VpnSettings,
        networking: Networking,
    ) -> None:
        super().__init__(scope, construct_id)

        # ---------------------------------------------------------------
        # Parameters
        # ---------------------------------------------------------------
        self.customer_gateway_ip = CfnParameter(
            self, "CustomerGatewayIp",
            type="String",
            description="Public IP of the on-premises VPN device.",
            default=str(settings.customer_gateway_ip),
        )
        self.customer_gateway_asn = CfnParameter(
            self, "CustomerGatewayAsn",
            type="Number",
            description="BGP ASN for the on-premises VPN device.",
            default=settings.customer_gateway_asn,
            min_value=64512,
            max_value=65534,
        )
        self.on_prem_cidr = CfnParameter(
            self, "OnPremCidr",
            type="String",
            description="On-premises CIDR range to route through the VPN (e.g. 10.10.0.0/16).",
            default=str(settings.on_prem_cidr),
        )

        # ---------------------------------------------------------------
        # Gateways and connection
        # ---------------------------------------------------------------
        self.vpn_gateway = ec2.CfnVPNGateway(self, "VpnGateway", type=VPN_TYPE)
        self.attachment = ec2.CfnVPCGatewayAttachment(
            self, "VpnGatewayAttachment",
            vpc_id=networking.vpc.vpc_id,
            vpn_gateway_id=self.vpn_gateway.ref,
        )

        customer_gateway = ec2.CfnCustomerGateway(
            self, "CustomerGateway",
            bgp_asn=self.customer_gateway_asn.value_as_number,
            ip_address=self.customer_gateway_ip.value_as_string,
            type=VPN_TYPE,
        )

        self.connection = ec2.CfnVPNConnection(
            self, "VpnConnection",
            customer_gateway_id=customer_gateway.ref,
            vpn_gateway_id=self.vpn_gateway.ref,
            type=VPN_TYPE,
            static_routes_only=True,
        )
        ec2.CfnVPNConnectionRoute(
            self, "VpnConnectionRoute",
            vpn_connection_id=self.connection.ref,
            destination_cidr_block=self.on_prem_cidr.value_as_string,
        )

        # ---------------------------------------------------------------
        # Subnet routes
        # ---------------------------------------------------------------
        self.routes = self._subnet_routes(networking)
        self.node.add_validation(PrecedenceCheck(self.routes, self.attachment))

    def _subnet_routes(self, networking: Networking) -> List[ec2.CfnRoute]:
        subnets = networking.vpc.select_subnets(subnet_type=networking.private_subnet_type).subnets
        routes = []
        for index, subnet in enumerate(subnets):
            route = ec2.CfnRoute(
                self, f"OnPremRoute{index}",
                route_table_id=subnet.route_table.route_table_id,
                destination_cidr_block=self.on_prem_cidr.value_as_string,
                gateway_id=self.vpn_gateway.ref,
            )
            # routes through a gateway that is not attached yet are rejected
            route.add_dependency(self.attachment)
            routes.append(route)
        return routes
